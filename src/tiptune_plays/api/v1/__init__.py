# src/tiptune_plays/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import plays_router

__all__ = ["plays_router"]
