"""Tests for domain-specific configuration."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.core.settings import AppConfig, ChatConfig, ServerConfig


class TestAppConfig:
    """AppConfig frozen immutability and property tests."""

    def test_frozen_immutability(self) -> None:
        config = AppConfig(name="test", version="1", env="development", debug=True)
        with pytest.raises(ValidationError):
            config.name = "changed"  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("env", "expected"), [("development", True), ("production", False)]
    )
    def test_is_development(self, env: str, expected: bool) -> None:
        config = AppConfig(name="app", version="1", env=env, debug=False)
        assert config.is_development is expected


class TestServerConfig:
    """ServerConfig frozen immutability and property tests."""

    def test_frozen_immutability(self) -> None:
        config = ServerConfig(host="0.0.0.0", port=8000, cors_origins="*")
        with pytest.raises(ValidationError):
            config.port = 9000  # type: ignore[misc]

    def test_cors_origins_list(self) -> None:
        config = ServerConfig(
            host="0.0.0.0",
            port=8000,
            cors_origins="https://a.example, https://b.example,",
        )
        assert config.cors_origins_list == ["https://a.example", "https://b.example"]


class TestChatConfig:
    """ChatConfig frozen immutability tests."""

    def test_frozen_immutability(self) -> None:
        config = ChatConfig(
            expiry_seconds=3600,
            socketio_path="socket.io",
            admin_display_name="Admin PPO",
            emergency_rate_limit="10/minute",
        )
        with pytest.raises(ValidationError):
            config.expiry_seconds = 1  # type: ignore[misc]


class TestSettingsDomainProperties:
    """Settings domain property access tests."""

    def test_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app.name == "live-chat-relay"
        assert s.server.port == 8081
        assert s.chat.expiry_seconds == 3600
        assert s.chat.socketio_path == "socket.io"
        assert s.chat.admin_display_name == "Admin PPO"
        assert s.chat.max_message_length is None
        assert s.app.is_development is True

    def test_app_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_NAME", "my-app")
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("DEBUG", "false")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app.name == "my-app"
        assert s.app.env == "production"
        assert s.app.debug is False
        assert s.app.is_development is False

    def test_server_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("CORS_ORIGINS", "https://desk.example")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.server.host == "127.0.0.1"
        assert s.server.port == 9000
        assert s.server.cors_origins_list == ["https://desk.example"]

    def test_chat_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAT_EXPIRY_SECONDS", "120")
        monkeypatch.setenv("SOCKETIO_PATH", "ws/chat")
        monkeypatch.setenv("ADMIN_DISPLAY_NAME", "Ops Desk")
        monkeypatch.setenv("EMERGENCY_RATE_LIMIT", "2/minute")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.chat.expiry_seconds == 120
        assert s.chat.socketio_path == "ws/chat"
        assert s.chat.admin_display_name == "Ops Desk"
        assert s.chat.emergency_rate_limit == "2/minute"

    def test_max_message_length_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_MESSAGE_LENGTH", "500")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.chat.max_message_length == 500

    def test_max_message_length_must_be_positive(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MAX_MESSAGE_LENGTH", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_expiry_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAT_EXPIRY_SECONDS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]
