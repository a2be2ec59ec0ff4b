"""HTTP JSON API for the relay.

Serves the post and fetch actions under ``/api/`` using FastAPI.
"""

from .app import create_app

__all__ = ["create_app"]
