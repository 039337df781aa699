# src/tiptune_plays/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .plays import router as plays_router

__all__ = ["plays_router"]
