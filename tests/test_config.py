"""Tests for configuration loading."""

import pytest

from chatrelay.config import Config, load_config


class TestDefaults:
    """Tests for default configuration."""

    def test_defaults(self):
        """Test built-in defaults."""
        config = load_config(None)

        assert config.server.address == "127.0.0.1"
        assert config.server.port == 8000
        assert config.server.base_url == "http://127.0.0.1:8000"
        assert config.relay.max_message_length == 0
        assert config.client.poll_interval_seconds == 2.0

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test that a nonexistent path falls back to defaults."""
        config = load_config(tmp_path / "nope.yaml")

        assert config == Config()


class TestYAML:
    """Tests for YAML loading."""

    def test_load_yaml(self, tmp_path):
        """Test values are read from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "server:\n"
            "  address: 0.0.0.0\n"
            "  port: 9000\n"
            "relay:\n"
            "  max_message_length: 280\n"
            "client:\n"
            "  url: http://relay:9000\n"
            "  poll_interval_seconds: 0.5\n"
        )

        config = load_config(path)

        assert config.server.address == "0.0.0.0"
        assert config.server.port == 9000
        assert config.relay.max_message_length == 280
        assert config.client.url == "http://relay:9000"
        assert config.client.poll_interval_seconds == 0.5
        # Unset keys keep their defaults
        assert config.client.max_retries == 3

    def test_empty_yaml(self, tmp_path):
        """Test an empty file yields defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path) == Config()


class TestEnvOverrides:
    """Tests for environment variable overrides."""

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Test CHATRELAY_ variables win over YAML."""
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  port: 9000\n")
        monkeypatch.setenv("CHATRELAY_SERVER_PORT", "9100")
        monkeypatch.setenv("CHATRELAY_SERVER_ADDRESS", "10.0.0.1")
        monkeypatch.setenv("CHATRELAY_MAX_MESSAGE_LENGTH", "64")
        monkeypatch.setenv("CHATRELAY_CLIENT_URL", "http://other:1")
        monkeypatch.setenv("CHATRELAY_POLL_INTERVAL", "1.5")

        config = load_config(path)

        assert config.server.port == 9100
        assert config.server.address == "10.0.0.1"
        assert config.relay.max_message_length == 64
        assert config.client.url == "http://other:1"
        assert config.client.poll_interval_seconds == 1.5

    def test_invalid_env_port(self, monkeypatch):
        """Test a non-numeric port is reported."""
        monkeypatch.setenv("CHATRELAY_SERVER_PORT", "eighty")

        with pytest.raises(ValueError):
            load_config(None)
