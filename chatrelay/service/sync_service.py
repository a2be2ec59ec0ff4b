"""Post and fetch-since operations over a MessageStore."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidInput
from ..store import SENTINEL, Message, MessageStore

logger = logging.getLogger(__name__)


@dataclass
class PostAck:
    """Acknowledgment of a successful post."""

    ok: bool = True
    position: int | None = None

    def to_dict(self) -> dict[str, Any]:
        # Callers only need the success indication
        return {}


@dataclass
class FetchResult:
    """Messages newer than the requested cursor, oldest first.

    ``store_id`` names the log the batch was read from, so a client can
    tell that positions belong to a different log after a restart.
    """

    messages: list[Message] = field(default_factory=list)
    store_id: str | None = None

    @property
    def latest_position(self) -> int | None:
        """Highest position in the batch, or None if empty."""
        return self.messages[-1].position if self.messages else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the getMessages response body."""
        return {
            "store_id": self.store_id,
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FetchResult":
        """Create from a getMessages response body."""
        return cls(
            messages=[Message.from_dict(m) for m in data.get("messages", [])],
            store_id=data.get("store_id"),
        )


class SyncService:
    """Stateless facade validating requests before they reach the store.

    Empty and whitespace-only messages are accepted. The only length limit
    is ``max_message_length`` when set to a positive value.
    """

    def __init__(self, store: MessageStore, max_message_length: int = 0):
        """Initialize the service.

        Args:
            store: Message log to delegate to.
            max_message_length: Longest accepted message, 0 for no limit.
        """
        self.store = store
        self.max_message_length = max_message_length

    def post(self, text: Any) -> PostAck:
        """Append a message to the log.

        Args:
            text: Message body.

        Returns:
            PostAck for the stored message.

        Raises:
            InvalidInput: If text is not a string or is too long.
        """
        if not isinstance(text, str):
            logger.info(f"Rejected post with {type(text).__name__} body")
            raise InvalidInput("message must be a string", field="message")

        if self.max_message_length > 0 and len(text) > self.max_message_length:
            logger.info(f"Rejected post of {len(text)} characters")
            raise InvalidInput(
                f"message exceeds {self.max_message_length} characters",
                field="message",
            )

        message = self.store.append(text)
        return PostAck(ok=True, position=message.position)

    def fetch_since(self, cursor: Any) -> FetchResult:
        """Get all messages after a cursor.

        Args:
            cursor: Last position the caller has seen, or SENTINEL.

        Returns:
            FetchResult with the new messages.

        Raises:
            InvalidInput: If cursor is not an integer or is below SENTINEL.
        """
        # bool is an int subclass but never a meaningful cursor
        if isinstance(cursor, bool) or not isinstance(cursor, int):
            logger.info(f"Rejected fetch with {type(cursor).__name__} cursor")
            raise InvalidInput("index must be an integer", field="index")

        if cursor < SENTINEL:
            logger.info(f"Rejected fetch with cursor {cursor}")
            raise InvalidInput(f"index must be >= {SENTINEL}", field="index")

        return FetchResult(
            messages=self.store.read_from(cursor),
            store_id=self.store.store_id,
        )
