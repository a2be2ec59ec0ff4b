"""Client side of the relay protocol.

Provides an HTTP client for the relay API and a polling loop that tracks
the caller's cursor.
"""

from .relay_client import RelayClient
from .sync_loop import ClientSyncLoop

__all__ = ["ClientSyncLoop", "RelayClient"]
