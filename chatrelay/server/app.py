"""FastAPI application exposing the relay over HTTP."""

import json
import logging
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Config
from ..errors import InvalidInput
from ..service import SyncService
from ..store import MessageStore

logger = logging.getLogger(__name__)


async def _read_params(request: Request) -> dict[str, Any]:
    """Decode the request body as a JSON object.

    An empty body decodes to no parameters.
    """
    body = await request.body()
    if not body.strip():
        return {}

    try:
        params = json.loads(body)
    except ValueError:
        raise InvalidInput("request body must be valid JSON")

    if not isinstance(params, dict):
        raise InvalidInput("request body must be a JSON object")

    return params


def create_app(config: Config, store: MessageStore | None = None) -> FastAPI:
    """Create the relay application.

    Args:
        config: Application configuration.
        store: Message log to serve. A fresh one is created if omitted.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="chatrelay",
        description="Minimal multi-client message relay",
        version=__version__,
    )

    if store is None:
        store = MessageStore()
    service = SyncService(store, max_message_length=config.relay.max_message_length)

    # Store references for route handlers
    app.state.config = config
    app.state.store = store
    app.state.service = service

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        return JSONResponse(status_code=400, content=exc.to_dict())

    # ==================== Relay API ====================

    @app.post("/api/postMessage")
    async def api_post_message(request: Request) -> dict[str, Any]:
        """Append one message to the shared channel."""
        params = await _read_params(request)
        if "message" not in params:
            raise InvalidInput("message is required", field="message")

        ack = service.post(params["message"])
        logger.debug(f"Posted message at position {ack.position}")
        return ack.to_dict()

    @app.post("/api/getMessages")
    async def api_get_messages(request: Request) -> dict[str, Any]:
        """Get every message after the supplied index."""
        params = await _read_params(request)
        if "index" not in params:
            raise InvalidInput("index is required", field="index")

        return service.fetch_since(params["index"]).to_dict()

    # ==================== Monitoring ====================

    @app.get("/api/stats")
    async def api_stats() -> dict[str, Any]:
        """Get log statistics."""
        stats = {"timestamp": datetime.now().isoformat()}
        stats.update(store.get_stats())
        return stats

    @app.get("/api/health")
    async def api_health() -> dict[str, Any]:
        """Health check endpoint for monitoring and load balancers."""
        return {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
            "message_count": len(store),
        }

    return app
