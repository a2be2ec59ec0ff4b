"""Request/response surface over the message log."""

from .sync_service import FetchResult, PostAck, SyncService

__all__ = ["FetchResult", "PostAck", "SyncService"]
