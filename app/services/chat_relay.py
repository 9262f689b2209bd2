"""Live chat relay between website clients and the admin desk.

Each client connection joins the room of its own conversation and every admin
connection joins the shared admin room. Messages are recorded in the sending
conversation's history and fanned out to both rooms.
"""

import asyncio
import time
from collections.abc import Iterable
from typing import Any, Protocol, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from app.core.exceptions import AuthorizationError, InvalidPayloadError, NotJoinedError
from app.repositories.chat_store import ChatStore
from app.repositories.session_registry import (
    ADMIN_ROOM,
    RoomKey,
    Session,
    SessionRegistry,
    room_for_client,
)
from app.schemas.relay_schema import (
    ActiveChat,
    ConversationRequest,
    JoinRequest,
    Message,
    Role,
    SendMessageRequest,
    TakeChatRequest,
    utc_now,
)

logger = structlog.get_logger()

DEFAULT_CLIENT_NAME = "Guest"
BODY_PREVIEW_LENGTH = 50
CLIENT_ID_KEYS = frozenset({"clientId", "client_id"})

RequestT = TypeVar("RequestT", bound=BaseModel)


class RelayTransport(Protocol):
    """Delivers one event to one connection."""

    async def send(self, connection_id: str, event: str, payload: Any) -> None: ...


def parse_payload(model: type[RequestT], data: Any) -> RequestT:
    """Validate an inbound event payload. Raises InvalidPayloadError."""
    if not isinstance(data, dict):
        raise InvalidPayloadError("Event payload must be an object")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(map(str, err["loc"])) for err in exc.errors())
        raise InvalidPayloadError(f"Invalid fields: {fields}") from exc


def _own_conversation(session: Session, data: Any) -> Any:
    """Drop the conversation id from client payloads; clients only use their own."""
    if session.is_admin or not isinstance(data, dict):
        return data
    return {key: value for key, value in data.items() if key not in CLIENT_ID_KEYS}


class ChatRelay:
    """Routes chat events between client rooms and the admin room.

    Handlers are serialised by a single lock, so each one runs to completion
    before the next starts and per-conversation delivery order matches
    arrival order.
    """

    def __init__(
        self,
        transport: RelayTransport,
        expiry_seconds: float = 3600,
        admin_display_name: str = "Admin PPO",
        max_message_length: int | None = None,
    ) -> None:
        self._transport = transport
        self._expiry_seconds = expiry_seconds
        self._admin_display_name = admin_display_name
        self._max_message_length = max_message_length
        self._registry = SessionRegistry()
        self._store = ChatStore()
        self._expiry_handles: dict[str, asyncio.TimerHandle] = {}
        self._lock = asyncio.Lock()

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def store(self) -> ChatStore:
        return self._store

    # --- Queries ---

    def list_active_chats(self) -> list[ActiveChat]:
        """Snapshot of every active chat entry."""
        return self._store.list_active_chats()

    def get_history(self, client_id: str) -> list[Message]:
        """Ordered history of one conversation."""
        return self._store.find_history(client_id)

    # --- Inbound events ---

    async def join(self, connection_id: str, data: Any) -> Session:
        """Bind a connection to the admin room or its client room."""
        request = parse_payload(JoinRequest, data)
        async with self._lock:
            if request.is_admin:
                return await self._join_admin(connection_id, request)
            return await self._join_client(connection_id, request)

    async def _join_admin(self, connection_id: str, request: JoinRequest) -> Session:
        session = Session(
            connection_id=connection_id,
            participant_id=request.participant_id or connection_id,
            display_name=request.display_name or self._admin_display_name,
            role=Role.ADMIN,
        )
        await self._rebind(session)
        logger.info(
            "Admin joined",
            connection_id=connection_id,
            display_name=session.display_name,
        )
        await self._transport.send(
            connection_id, "active_chats_update", self._active_chats_payload()
        )
        return session

    async def _join_client(self, connection_id: str, request: JoinRequest) -> Session:
        if request.participant_id is None:
            raise InvalidPayloadError("participantId is required for clients")

        session = Session(
            connection_id=connection_id,
            participant_id=request.participant_id,
            display_name=request.display_name or DEFAULT_CLIENT_NAME,
            role=Role.CLIENT,
        )
        await self._rebind(session)
        client_id = session.participant_id
        self._cancel_expiry(client_id)

        chat = ActiveChat(
            client_id=client_id,
            client_name=session.display_name,
            connection_id=connection_id,
        )
        self._store.save_active_chat(chat)
        logger.info(
            "Client joined",
            connection_id=connection_id,
            client_id=client_id,
            room=str(session.room),
        )

        await self._deliver(
            [ADMIN_ROOM],
            "new_chat_alert",
            {
                "clientId": client_id,
                "displayName": session.display_name,
                "startTime": chat.start_time.isoformat(),
                "message": (
                    f"{session.display_name} has started a secure chat session"
                ),
            },
        )
        await self._transport.send(
            connection_id, "chat_history", self._history_payload(client_id)
        )
        return session

    async def send_message(self, connection_id: str, data: Any) -> Message:
        """Record a message and deliver it to both sides of the conversation."""
        session = self._require_session(connection_id)
        request = parse_payload(SendMessageRequest, _own_conversation(session, data))
        client_id = self._resolve_conversation(session, request.client_id)
        if (
            self._max_message_length is not None
            and len(request.body) > self._max_message_length
        ):
            raise InvalidPayloadError(
                f"Message body exceeds {self._max_message_length} characters"
            )

        async with self._lock:
            message = Message(
                body=request.body,
                sender_display_name=session.display_name,
                sender_role=session.role,
                client_id=client_id,
                is_emergency=request.is_emergency,
            )
            self._store.append_message(message)

            payload = message.to_payload()
            await self._deliver(
                [ADMIN_ROOM, room_for_client(client_id)], "new_message", payload
            )
            if message.is_emergency:
                logger.warning(
                    "Emergency chat message",
                    client_id=client_id,
                    message_id=message.id,
                    sender_role=str(message.sender_role),
                )
                await self._deliver(
                    [ADMIN_ROOM],
                    "emergency_alert",
                    {**payload, "alertType": "emergency_chat", "urgency": "critical"},
                )

        logger.info(
            "Message routed",
            client_id=client_id,
            message_id=message.id,
            sender_role=str(message.sender_role),
            preview=message.body[:BODY_PREVIEW_LENGTH],
        )
        return message

    async def take_chat(self, connection_id: str, data: Any) -> ActiveChat | None:
        """Record an admin as the handler of a conversation.

        Last write wins: a later takeover silently replaces the handler.
        """
        session = self._require_admin(connection_id)
        request = parse_payload(TakeChatRequest, data)
        client_id = self._resolve_conversation(session, request.client_id)
        admin_name = request.admin_display_name or session.display_name

        async with self._lock:
            chat = self._store.find_active_chat(client_id)
            if chat is None:
                logger.info("Takeover of unknown chat ignored", client_id=client_id)
                return None

            previous_handler = chat.admin_handler
            chat.admin_handler = admin_name
            chat.handler_connection_id = connection_id
            logger.info(
                "Admin took chat",
                client_id=client_id,
                admin=admin_name,
                previous_handler=previous_handler,
            )

            await self._deliver(
                [room_for_client(client_id)],
                "admin_joined",
                {
                    "clientId": client_id,
                    "adminDisplayName": admin_name,
                    "senderRole": Role.ADMIN.value,
                    "message": (
                        f"{admin_name} has joined your secure chat. "
                        "PPO assistance is now active."
                    ),
                },
            )
            await self._deliver(
                [ADMIN_ROOM],
                "chat_taken",
                {
                    "clientId": client_id,
                    "adminDisplayName": admin_name,
                    "message": (
                        f"{admin_name} is now handling chat with {chat.client_name}"
                    ),
                },
                exclude=connection_id,
            )
            return chat

    async def typing(self, connection_id: str, data: Any, started: bool) -> None:
        """Forward a typing indicator to the other side of the conversation."""
        session = self._require_session(connection_id)
        request = parse_payload(ConversationRequest, _own_conversation(session, data))
        client_id = self._resolve_conversation(session, request.client_id)

        async with self._lock:
            if session.is_admin:
                event = "admin_typing" if started else "admin_typing_stop"
                await self._deliver(
                    [room_for_client(client_id)], event, {"clientId": client_id}
                )
            elif started:
                await self._deliver(
                    [ADMIN_ROOM],
                    "client_typing",
                    {"clientId": client_id, "displayName": session.display_name},
                )
            else:
                await self._deliver(
                    [ADMIN_ROOM], "client_typing_stop", {"clientId": client_id}
                )

    async def request_history(self, connection_id: str, data: Any) -> list[Message]:
        """Send one conversation's history to the requesting admin only."""
        session = self._require_admin(connection_id)
        request = parse_payload(ConversationRequest, data)
        client_id = self._resolve_conversation(session, request.client_id)
        async with self._lock:
            history = self._store.find_history(client_id)
            await self._transport.send(
                connection_id,
                "chat_history",
                [message.to_payload() for message in history],
            )
        return history

    async def disconnect(self, connection_id: str) -> None:
        """Release a connection and update the conversation bookkeeping."""
        async with self._lock:
            session = self._registry.unbind(connection_id)
            if session is None:
                logger.debug("Unjoined connection closed", connection_id=connection_id)
                return

            if session.is_admin:
                logger.info("Admin disconnected", connection_id=connection_id)
                await self._deliver(
                    [ADMIN_ROOM], "active_chats_update", self._active_chats_payload()
                )
                return

            await self._client_left(session)

    async def _client_left(self, session: Session) -> None:
        client_id = session.participant_id
        chat = self._store.find_active_chat(client_id)
        if chat is None:
            return

        remaining = self._registry.members(session.room)
        if remaining:
            # Another tab of the same client is still connected.
            if chat.connection_id == session.connection_id:
                chat.connection_id = min(remaining)
            logger.info(
                "Client connection closed, conversation still live",
                client_id=client_id,
                connections=len(remaining),
            )
            return

        chat.status = "disconnected"
        chat.end_time = utc_now()
        logger.info("Client disconnected", client_id=client_id)
        await self._deliver(
            [ADMIN_ROOM],
            "client_disconnected",
            {
                "clientId": client_id,
                "displayName": session.display_name,
                "endTime": chat.end_time.isoformat(),
            },
        )
        self._schedule_expiry(client_id)

    # --- Out-of-band ---

    async def broadcast_emergency(
        self, client_id: str, message: str, location: str | None = None
    ) -> str:
        """Alert every admin connection without going through a live session."""
        alert_id = f"CHAT_EMG_{int(time.time() * 1000)}"
        logger.warning(
            "Out-of-band emergency alert",
            alert_id=alert_id,
            client_id=client_id,
            location=location,
        )
        async with self._lock:
            await self._deliver(
                [ADMIN_ROOM],
                "emergency_alert",
                {
                    "type": "chat_emergency",
                    "clientId": client_id,
                    "message": message,
                    "location": location,
                    "timestamp": utc_now().isoformat(),
                    "urgency": "critical",
                },
            )
        return alert_id

    # --- Expiry ---

    def _schedule_expiry(self, client_id: str) -> None:
        self._cancel_expiry(client_id)
        loop = asyncio.get_running_loop()
        self._expiry_handles[client_id] = loop.call_later(
            self._expiry_seconds, self._expire, client_id
        )

    def _cancel_expiry(self, client_id: str) -> None:
        handle = self._expiry_handles.pop(client_id, None)
        if handle is not None:
            handle.cancel()
            logger.debug("Chat expiry cancelled", client_id=client_id)

    def _expire(self, client_id: str) -> None:
        self._expiry_handles.pop(client_id, None)
        chat = self._store.find_active_chat(client_id)
        if chat is None or chat.status != "disconnected":
            return
        self._store.delete_active_chat(client_id)
        logger.info("Disconnected chat expired", client_id=client_id)

    def shutdown(self) -> None:
        """Cancel every pending expiry."""
        for handle in self._expiry_handles.values():
            handle.cancel()
        self._expiry_handles.clear()

    # --- Helpers ---

    async def _rebind(self, session: Session) -> None:
        previous = self._registry.bind(session)
        if previous is not None and previous.room != session.room:
            logger.info(
                "Connection switched room",
                connection_id=session.connection_id,
                previous_room=str(previous.room),
                room=str(session.room),
            )
            if previous.is_admin:
                await self._deliver(
                    [ADMIN_ROOM], "active_chats_update", self._active_chats_payload()
                )
            else:
                await self._client_left(previous)

    def _require_session(self, connection_id: str) -> Session:
        session = self._registry.get(connection_id)
        if session is None:
            raise NotJoinedError()
        return session

    def _require_admin(self, connection_id: str) -> Session:
        session = self._require_session(connection_id)
        if not session.is_admin:
            raise AuthorizationError("Only admins may use this event")
        return session

    @staticmethod
    def _resolve_conversation(session: Session, client_id: str | None) -> str:
        """Clients always talk in their own conversation; admins must name one."""
        if not session.is_admin:
            return session.participant_id
        if client_id is None:
            raise InvalidPayloadError("clientId is required for admin events")
        return client_id

    async def _deliver(
        self,
        rooms: Iterable[RoomKey],
        event: str,
        payload: Any,
        exclude: str | None = None,
    ) -> None:
        recipients: set[str] = set()
        for room in rooms:
            recipients |= self._registry.members(room)
        if exclude is not None:
            recipients.discard(exclude)
        for connection_id in sorted(recipients):
            await self._transport.send(connection_id, event, payload)

    def _active_chats_payload(self) -> list[dict]:
        return [chat.to_payload() for chat in self._store.list_active_chats()]

    def _history_payload(self, client_id: str) -> list[dict]:
        history = self._store.find_history(client_id)
        return [message.to_payload() for message in history]
