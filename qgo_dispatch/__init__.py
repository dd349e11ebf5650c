"""QGO Fleet Dispatch: live fleet mirror, job lifecycle and session service."""
