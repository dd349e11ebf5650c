"""HTTP endpoint modules for API v1."""
