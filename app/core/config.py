"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.settings import AppConfig, ChatConfig, ServerConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.chat.expiry_seconds).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = Field(
        default="live-chat-relay",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version reported by the API",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8081,
        ge=1,
        le=65535,
        description="Server port",
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # Chat relay
    chat_expiry_seconds: float = Field(
        default=3600,
        gt=0,
        description="Seconds a disconnected chat stays listed before removal",
    )
    socketio_path: str = Field(
        default="socket.io",
        description="Mount path of the Socket.IO endpoint",
    )
    admin_display_name: str = Field(
        default="Admin PPO",
        min_length=1,
        description="Display name used for admins that join without one",
    )
    emergency_rate_limit: str = Field(
        default="10/minute",
        description="Out-of-band emergency endpoint rate limit",
    )
    max_message_length: int | None = Field(
        default=None,
        ge=1,
        description="Longest accepted chat message body; unset means no limit",
    )

    # --- Domain properties ---

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            version=self.app_version,
            env=self.app_env,
            debug=self.debug,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            cors_origins=self.cors_origins,
        )

    @cached_property
    def chat(self) -> ChatConfig:
        """Chat relay configuration."""
        return ChatConfig(
            expiry_seconds=self.chat_expiry_seconds,
            socketio_path=self.socketio_path,
            admin_display_name=self.admin_display_name,
            emergency_rate_limit=self.emergency_rate_limit,
            max_message_length=self.max_message_length,
        )


# Global settings instance
settings = Settings()
