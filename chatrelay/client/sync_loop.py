"""Polling loop that keeps a client up to date with the relay."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from ..errors import RelayError
from ..store import SENTINEL, Message
from .relay_client import RelayClient

logger = logging.getLogger(__name__)


class ClientSyncLoop:
    """Fetches new messages on an interval and advances a cursor.

    The next poll is scheduled only after the previous response arrives.
    The cursor moves past a message only once ``on_message`` has returned
    for it, so a failed poll or a failing handler never skips anything.
    """

    def __init__(
        self,
        client: RelayClient,
        on_message: Callable[[Message], Any] | None = None,
        poll_interval: float = 2.0,
        max_backoff: float = 60.0,
        detect_restart: bool = True,
    ):
        """Initialize the loop.

        Args:
            client: Client for the relay server.
            on_message: Called once per new message, in position order.
            poll_interval: Seconds to wait after each response.
            max_backoff: Upper bound on the wait after repeated failures.
            detect_restart: Reset the cursor when the server's store changes.
        """
        self.client = client
        self.on_message = on_message
        self.poll_interval = poll_interval
        self.max_backoff = max_backoff
        self.detect_restart = detect_restart
        self.cursor = SENTINEL
        self._store_id: str | None = None
        self._consecutive_failures = 0

    def _is_new_store(self, store_id: str | None) -> bool:
        return (
            self.detect_restart
            and self._store_id is not None
            and store_id != self._store_id
        )

    async def poll_once(self) -> list[Message]:
        """Fetch and deliver messages newer than the cursor.

        A batch read from a different log than the previous poll is
        dropped; the cursor is reset and the new log is read from the
        beginning.

        Returns:
            The messages delivered by this poll.

        Raises:
            RelayError: If the server could not be queried.
            Exception: Whatever ``on_message`` raised. The cursor stays on
                the last message handled successfully.
        """
        result = await self.client.get_messages(self.cursor)

        if self._is_new_store(result.store_id):
            logger.info(
                f"Relay store changed ({self._store_id} -> {result.store_id}), "
                "resetting cursor"
            )
            self._store_id = result.store_id
            self.cursor = SENTINEL
            result = await self.client.get_messages(self.cursor)

            if self._is_new_store(result.store_id):
                # Restarted again in between, pick it up on the next poll
                return []

        self._store_id = result.store_id

        delivered = []
        for message in result.messages:
            if self.on_message:
                self.on_message(message)
            self.cursor = message.position
            delivered.append(message)

        if delivered:
            logger.debug(f"Received {len(delivered)} messages, cursor={self.cursor}")

        return delivered

    async def post(self, text: str) -> None:
        """Post a message. The cursor is left alone."""
        await self.client.post_message(text)

    def _next_wait(self) -> float:
        if self._consecutive_failures == 0:
            return self.poll_interval
        return min(
            self.poll_interval * (2 ** self._consecutive_failures),
            self.max_backoff,
        )

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Poll until stop_event is set.

        Relay failures back off the interval. Errors raised by
        ``on_message`` are logged and the loop keeps polling.

        Args:
            stop_event: Event to signal the loop should stop.
        """
        logger.info(f"Starting poll loop with {self.poll_interval}s interval")

        while True:
            if stop_event and stop_event.is_set():
                break

            try:
                await self.poll_once()
                self._consecutive_failures = 0
            except RelayError as e:
                self._consecutive_failures += 1
                logger.error(f"Poll failed: {e}")
            except Exception as e:
                logger.error(f"Message handler failed at cursor {self.cursor}: {e}")

            wait_time = self._next_wait()

            if stop_event:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=wait_time)
                    break  # Stop event was set
                except asyncio.TimeoutError:
                    pass  # Normal timeout, continue loop
            else:
                await asyncio.sleep(wait_time)

        logger.info("Poll loop stopped")
