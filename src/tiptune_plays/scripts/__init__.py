"""Operational scripts for the plays service."""
