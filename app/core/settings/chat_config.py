"""Live chat relay configuration."""

from pydantic import BaseModel


class ChatConfig(BaseModel, frozen=True):
    """Chat relay settings."""

    expiry_seconds: float
    socketio_path: str
    admin_display_name: str
    emergency_rate_limit: str
    max_message_length: int | None = None
