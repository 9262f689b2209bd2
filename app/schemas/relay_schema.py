"""Live chat relay models and event payload schemas.

Wire payloads use camelCase keys to match the Socket.IO frontend; Python
attributes stay snake_case.
"""

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_message_id() -> str:
    """Generate an opaque message identifier."""
    return f"msg_{uuid.uuid4().hex}"


class Role(StrEnum):
    """Participant class of a relay session."""

    CLIENT = "client"
    ADMIN = "admin"


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """Dump to a JSON-safe dict keyed by wire aliases."""
        return self.model_dump(mode="json", by_alias=True)


# --- Domain entities ---


class Message(CamelModel):
    """One chat utterance, immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id)
    body: str
    sender_display_name: str
    sender_role: Role
    timestamp: datetime = Field(default_factory=utc_now)
    client_id: str
    is_emergency: bool = False


class ActiveChat(CamelModel):
    """Bookkeeping for one client's ongoing conversation."""

    client_id: str
    client_name: str
    connection_id: str
    start_time: datetime = Field(default_factory=utc_now)
    status: Literal["active", "disconnected"] = "active"
    end_time: datetime | None = None
    admin_handler: str | None = None
    handler_connection_id: str | None = None


# --- Inbound event payloads ---


class JoinRequest(CamelModel):
    """`join` event payload."""

    participant_id: str | None = Field(default=None, min_length=1)
    display_name: str | None = None
    is_admin: bool = False


class SendMessageRequest(CamelModel):
    """`send_message` event payload."""

    body: str = Field(..., min_length=1)
    client_id: str | None = Field(default=None, min_length=1)
    is_emergency: bool = False


class TakeChatRequest(CamelModel):
    """`admin_take_chat` event payload."""

    client_id: str | None = Field(default=None, min_length=1)
    admin_display_name: str | None = None


class ConversationRequest(CamelModel):
    """Payload of events that only name a conversation.

    Used by `typing_start`, `typing_stop` and `request_history`.
    """

    client_id: str | None = Field(default=None, min_length=1)


# --- HTTP request/response schemas ---


class EmergencyRequest(CamelModel):
    """Out-of-band emergency alert request."""

    client_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, max_length=4000)
    location: str | None = None


class EmergencyResponse(CamelModel):
    """Result of an out-of-band emergency broadcast."""

    alert_id: str
    dispatch_status: str = "alert_sent"


class ActiveChatsResponse(CamelModel):
    """Snapshot of all active chats."""

    active_chats: list[ActiveChat]
    count: int


class ChatHistoryResponse(CamelModel):
    """Stored history of one conversation."""

    client_id: str
    messages: list[Message]
    count: int
