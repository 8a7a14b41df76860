"""REST API layer for VolcBoard.

Exposes:
    create_app -- FastAPI application factory.
    build_app  -- Alias for create_app (used by volcboard.app bootstrap).
"""

from volcboard.api.app import create_app

build_app = create_app

__all__ = ["build_app", "create_app"]
