"""In-memory append-only message log."""

from .message_store import SENTINEL, Message, MessageStore

__all__ = ["SENTINEL", "Message", "MessageStore"]
