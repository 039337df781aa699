"""Utility helpers for the plays service."""
