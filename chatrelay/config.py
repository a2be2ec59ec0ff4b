"""Configuration loading for chatrelay."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ServerConfig:
    address: str = "127.0.0.1"
    port: int = 8000

    @property
    def base_url(self) -> str:
        return f"http://{self.address}:{self.port}"


@dataclass
class RelayConfig:
    """Configuration for the message log and its validation."""

    max_message_length: int = 0  # 0 means unlimited


@dataclass
class ClientConfig:
    """Configuration for the polling client."""

    url: str = "http://127.0.0.1:8000"
    poll_interval_seconds: float = 2.0
    timeout_seconds: float = 10.0
    max_retries: int = 3
    max_backoff_seconds: float = 60.0


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    client: ClientConfig = field(default_factory=ClientConfig)


def _get_env(key: str, default: Any = None) -> Any:
    """Get environment variable with CHATRELAY_ prefix."""
    return os.environ.get(f"CHATRELAY_{key}", default)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    # Server overrides
    if address := _get_env("SERVER_ADDRESS"):
        config.server.address = address
    if port := _get_env("SERVER_PORT"):
        config.server.port = int(port)

    # Relay overrides
    if max_length := _get_env("MAX_MESSAGE_LENGTH"):
        config.relay.max_message_length = int(max_length)

    # Client overrides
    if url := _get_env("CLIENT_URL"):
        config.client.url = url
    if interval := _get_env("POLL_INTERVAL"):
        config.client.poll_interval_seconds = float(interval)

    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, uses default config.

    Returns:
        Loaded Config object.
    """
    config = Config()

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

            # Parse server config
            if "server" in data:
                server_data = data["server"]
                config.server = ServerConfig(
                    address=server_data.get("address", config.server.address),
                    port=server_data.get("port", config.server.port),
                )

            # Parse relay config
            if "relay" in data:
                relay_data = data["relay"]
                config.relay = RelayConfig(
                    max_message_length=relay_data.get(
                        "max_message_length", config.relay.max_message_length
                    ),
                )

            # Parse client config
            if "client" in data:
                client_data = data["client"]
                config.client = ClientConfig(
                    url=client_data.get("url", config.client.url),
                    poll_interval_seconds=client_data.get(
                        "poll_interval_seconds", config.client.poll_interval_seconds
                    ),
                    timeout_seconds=client_data.get(
                        "timeout_seconds", config.client.timeout_seconds
                    ),
                    max_retries=client_data.get(
                        "max_retries", config.client.max_retries
                    ),
                    max_backoff_seconds=client_data.get(
                        "max_backoff_seconds", config.client.max_backoff_seconds
                    ),
                )

    # Apply environment variable overrides
    config = _apply_env_overrides(config)

    return config
