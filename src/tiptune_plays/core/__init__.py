"""Core configuration for the plays service."""
