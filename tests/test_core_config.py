"""Tests for client configuration."""

import dataclasses

import pytest

from roomlink.core.config import (
    DEFAULT_DEV_SERVER_PORT,
    DEFAULT_RPC_TIMEOUT,
    DevelopmentServer,
    MultiplayerConfig,
)
from roomlink.core.probe import ProbePolicy


class TestDevelopmentServer:
    """Tests for DevelopmentServer."""

    def test_default_port(self) -> None:
        """Test the default development server port."""
        assert DevelopmentServer("localhost").port == DEFAULT_DEV_SERVER_PORT == 8184

    def test_empty_address(self) -> None:
        """Test an empty address is rejected."""
        with pytest.raises(ValueError):
            DevelopmentServer("")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("localhost", DevelopmentServer("localhost", 8184)),
            ("localhost:9000", DevelopmentServer("localhost", 9000)),
            (" 10.0.0.2:8200 ", DevelopmentServer("10.0.0.2", 8200)),
            ("::1", DevelopmentServer("::1", 8184)),
            ("[::1]", DevelopmentServer("::1", 8184)),
            ("[::1]:9000", DevelopmentServer("::1", 9000)),
        ],
    )
    def test_parse(self, value: str, expected: DevelopmentServer) -> None:
        """Test parsing host[:port] strings."""
        assert DevelopmentServer.parse(value) == expected

    @pytest.mark.parametrize("value", ["", "host:abc", "host:", "[::1", "[::1]9000", "host:70000"])
    def test_parse_invalid(self, value: str) -> None:
        """Test invalid strings are rejected."""
        with pytest.raises(ValueError):
            DevelopmentServer.parse(value)

    def test_str(self) -> None:
        """Test string forms."""
        assert str(DevelopmentServer("localhost", 9000)) == "localhost:9000"
        assert str(DevelopmentServer("::1", 9000)) == "[::1]:9000"


class TestMultiplayerConfig:
    """Tests for MultiplayerConfig."""

    def test_defaults(self) -> None:
        """Test default settings."""
        config = MultiplayerConfig()
        assert config.development_server is None
        assert config.is_dev is False
        assert config.use_secure_connections is False
        assert config.probe_policy == ProbePolicy(1000, 3)
        assert config.rpc_timeout == DEFAULT_RPC_TIMEOUT

    def test_frozen(self) -> None:
        """Test configs cannot be mutated after construction."""
        config = MultiplayerConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.use_secure_connections = True  # type: ignore[misc]

    def test_is_dev(self) -> None:
        """Test is_dev follows the override."""
        assert MultiplayerConfig(development_server=DevelopmentServer("localhost")).is_dev

    def test_from_env_empty(self) -> None:
        """Test an empty environment gives defaults."""
        assert MultiplayerConfig.from_env({}) == MultiplayerConfig()

    def test_from_env_full(self) -> None:
        """Test reading every variable."""
        config = MultiplayerConfig.from_env(
            {
                "ROOMLINK_DEV_SERVER": "devbox:9001",
                "ROOMLINK_SECURE": "yes",
                "ROOMLINK_PROBE_TIMEOUT_MS": "250",
                "ROOMLINK_PROBE_ATTEMPTS": "5",
                "ROOMLINK_RPC_TIMEOUT": "2.5",
            }
        )
        assert config.development_server == DevelopmentServer("devbox", 9001)
        assert config.use_secure_connections is True
        assert config.probe_policy == ProbePolicy(250, 5)
        assert config.rpc_timeout == 2.5

    def test_from_env_partial_probe(self) -> None:
        """Test unset probe values keep their defaults."""
        config = MultiplayerConfig.from_env({"ROOMLINK_PROBE_ATTEMPTS": "1"})
        assert config.probe_policy == ProbePolicy(1000, 1)

    @pytest.mark.parametrize(
        "environ",
        [
            {"ROOMLINK_SECURE": "maybe"},
            {"ROOMLINK_PROBE_TIMEOUT_MS": "fast"},
            {"ROOMLINK_PROBE_ATTEMPTS": "0"},
            {"ROOMLINK_RPC_TIMEOUT": "soon"},
            {"ROOMLINK_DEV_SERVER": "devbox:port"},
        ],
    )
    def test_from_env_invalid(self, environ: dict[str, str]) -> None:
        """Test invalid values raise ValueError."""
        with pytest.raises(ValueError):
            MultiplayerConfig.from_env(environ)

    def test_from_env_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test os.environ is used by default."""
        monkeypatch.setenv("ROOMLINK_SECURE", "1")
        monkeypatch.delenv("ROOMLINK_DEV_SERVER", raising=False)
        assert MultiplayerConfig.from_env().use_secure_connections is True
