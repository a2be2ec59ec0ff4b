"""CLI entry point for chatrelay."""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

import uvicorn

from .client import ClientSyncLoop, RelayClient
from .config import Config, load_config
from .errors import RelayError
from .server import create_app
from .store import Message

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = {
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class JSONFormatter(logging.Formatter):
    """Render each log record as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(log_data, default=str)


def setup_logging(verbose: bool = False, log_level: str | None = None, json_output: bool = False) -> None:
    """Configure the root logger.

    An explicit log_level wins over verbose.
    """
    if log_level:
        level = LOG_LEVELS.get(log_level, logging.INFO)
    else:
        level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logging.basicConfig(level=level, handlers=[handler])


def _make_client(config: Config, url: str | None) -> RelayClient:
    return RelayClient(
        base_url=url or config.client.url,
        timeout=config.client.timeout_seconds,
        max_retries=config.client.max_retries,
    )


async def cmd_serve(args: argparse.Namespace) -> int:
    """Run the relay server."""
    config = load_config(args.config)

    address = args.address or config.server.address
    port = args.port if args.port is not None else config.server.port

    print(f"Starting chatrelay on http://{address}:{port}")

    app = create_app(config)

    verbose = getattr(args, "verbose", False)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=address,
            port=port,
            log_level="info" if verbose else "warning",
        )
    )

    try:
        await server.serve()
    except SystemExit:
        # uvicorn exits when the socket cannot be bound
        print("Unable to listen on the specified port.", file=sys.stderr)
        return 1

    if not server.started:
        print("Unable to listen on the specified port.", file=sys.stderr)
        return 1

    return 0


async def cmd_post(args: argparse.Namespace) -> int:
    """Post a single message."""
    config = load_config(args.config)
    client = _make_client(config, args.url)

    try:
        await client.post_message(args.text)
    except RelayError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _print_message(message: Message) -> None:
    print(f"[{message.position}] {message.text}", flush=True)


async def cmd_watch(args: argparse.Namespace) -> int:
    """Print messages as they arrive."""
    config = load_config(args.config)
    client = _make_client(config, args.url)

    interval = (
        args.interval
        if args.interval is not None
        else config.client.poll_interval_seconds
    )
    loop = ClientSyncLoop(
        client,
        on_message=_print_message,
        poll_interval=interval,
        max_backoff=config.client.max_backoff_seconds,
    )

    try:
        await loop.run()
    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\nStopped watching.")

    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    """Show server statistics."""
    config = load_config(args.config)
    client = _make_client(config, args.url)

    try:
        stats = await client.get_stats()
    except RelayError as e:
        if args.json:
            print(json.dumps({"connected": False, "error": str(e)}, indent=2))
        else:
            print(f"Relay: {client.base_url} (unreachable: {e})")
        return 1

    if args.json:
        print(json.dumps({"connected": True, **stats}, indent=2))
    else:
        print(f"Relay: {client.base_url}")
        print(f"  Store: {stats.get('store_id')}")
        print(f"  Messages: {stats.get('message_count')}")
        print(f"  Latest position: {stats.get('latest_position')}")

    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="chatrelay",
        description="A minimal multi-client message relay",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to config file (default: built-in defaults)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["warning", "info", "debug"],
        default=None,
        help="Set log level explicitly (overrides -v/--verbose)",
    )
    parser.add_argument(
        "--json-logs",
        dest="json_logs",
        action="store_true",
        help="Output logs as JSON for machine parsing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the relay server")
    serve_parser.add_argument(
        "-a", "--address",
        type=str,
        default=None,
        help="Address to bind to (default: 127.0.0.1)",
    )
    serve_parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help="Port to listen on (default: 8000)",
    )
    serve_parser.set_defaults(func=cmd_serve)

    # Post command
    post_parser = subparsers.add_parser("post", help="Post a message")
    post_parser.add_argument("text", help="Message text")
    post_parser.add_argument("--url", default=None, help="Relay server URL")
    post_parser.set_defaults(func=cmd_post)

    # Watch command
    watch_parser = subparsers.add_parser("watch", help="Print messages as they arrive")
    watch_parser.add_argument("--url", default=None, help="Relay server URL")
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls (default: 2.0)",
    )
    watch_parser.set_defaults(func=cmd_watch)

    # Status command
    status_parser = subparsers.add_parser("status", help="Show server statistics")
    status_parser.add_argument("--url", default=None, help="Relay server URL")
    status_parser.add_argument(
        "--json",
        action="store_true",
        help="Output status as JSON",
    )
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args()

    setup_logging(args.verbose, args.log_level, args.json_logs)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
