"""Domain services: store adapters, session, synchronization and workflow."""
