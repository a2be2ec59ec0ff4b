"""Append-only message log addressed by position.

Every message gets the next integer position when it is appended, starting
at 0. Readers ask for everything after a cursor they already hold; the
sentinel cursor -1 means "from the beginning".
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Cursor value meaning "no messages seen yet"
SENTINEL = -1


@dataclass(frozen=True)
class Message:
    """A single message in the log."""

    position: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire entry served by the HTTP API."""
        return {"index": self.position, "message": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Create from a wire entry."""
        return cls(position=data["index"], text=data["message"])


class MessageStore:
    """Thread-safe, in-memory, append-only message log.

    Positions equal list indices, so a read from cursor ``p`` is the slice
    starting at ``p + 1``. The log is never trimmed and lives only as long
    as the process.
    """

    def __init__(self):
        self._messages: list[Message] = []
        self._lock = threading.Lock()
        self.store_id = uuid.uuid4().hex

    def append(self, text: str) -> Message:
        """Append a message and assign it the next position.

        Args:
            text: Message body, stored verbatim.

        Returns:
            The stored Message.
        """
        with self._lock:
            message = Message(position=len(self._messages), text=text)
            self._messages.append(message)

        logger.debug(f"Appended message at position {message.position}")
        return message

    def read_from(self, position: int = SENTINEL) -> list[Message]:
        """Get all messages after a position.

        Args:
            position: Last position the caller has seen (exclusive).

        Returns:
            Messages with a greater position, oldest first. Empty when the
            caller is already up to date.
        """
        start = max(position, SENTINEL) + 1
        with self._lock:
            return self._messages[start:]

    def latest_position(self) -> int:
        """Get the highest assigned position, or SENTINEL if empty."""
        with self._lock:
            return len(self._messages) - 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def get_stats(self) -> dict[str, Any]:
        """Get log statistics.

        Returns:
            Dictionary with message count, latest position and store id.
        """
        with self._lock:
            count = len(self._messages)

        return {
            "store_id": self.store_id,
            "message_count": count,
            "latest_position": count - 1,
        }
