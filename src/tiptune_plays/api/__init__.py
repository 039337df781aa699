"""HTTP API for the plays service."""
