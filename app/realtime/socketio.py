"""Socket.IO server for the live chat widget and the admin chat console.

Frontend convention:
- URL base: ws://<host>:<port>
- Socket.IO path: SOCKETIO_PATH (default /socket.io/)
- First event after connecting must be `join`

Every inbound event is acknowledged with `{"success": true, ...}` or
`{"success": false, "error": {"code", "message"}}`.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any

import socketio
import structlog

from app.core.config import settings
from app.core.exceptions import AppException
from app.services.chat_relay import ChatRelay

logger = structlog.get_logger()

EventHandler = Callable[[str, Any], Awaitable[dict[str, Any]]]


def _cors_allowed_origins() -> str | list[str]:
    origins = settings.server.cors_origins_list
    if not origins or origins == ["*"]:
        return "*"
    return origins


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=_cors_allowed_origins(),
    logger=False,
    engineio_logger=False,
)


class SocketIOTransport:
    """Delivers relay events to individual Socket.IO connections."""

    def __init__(self, server: socketio.AsyncServer) -> None:
        self._server = server

    async def send(self, connection_id: str, event: str, payload: Any) -> None:
        await self._server.emit(event, payload, to=connection_id)


chat_relay = ChatRelay(
    SocketIOTransport(sio),
    expiry_seconds=settings.chat.expiry_seconds,
    admin_display_name=settings.chat.admin_display_name,
    max_message_length=settings.chat.max_message_length,
)


def acknowledged(event: str) -> Callable[[EventHandler], EventHandler]:
    """Turn relay errors into a failure acknowledgement for the sender."""

    def decorator(handler: EventHandler) -> EventHandler:
        @functools.wraps(handler)
        async def wrapper(sid: str, data: Any = None) -> dict[str, Any]:
            try:
                return await handler(sid, data)
            except AppException as exc:
                logger.warning(
                    "Chat event rejected",
                    sid=sid,
                    socket_event=event,
                    code=exc.code,
                    reason=exc.message,
                )
                return exc.to_dict()

        return wrapper

    return decorator


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    # The connection stays inert until it sends `join`.
    logger.info("Socket connected", sid=sid)


@sio.event
async def disconnect(sid: str, reason: Any = None):
    logger.info("Socket disconnected", sid=sid, reason=str(reason) if reason else None)
    await chat_relay.disconnect(sid)


@sio.on("join")
@acknowledged("join")
async def join(sid: str, data: Any) -> dict[str, Any]:
    session = await chat_relay.join(sid, data)
    return {"success": True, "room": str(session.room), "role": session.role.value}


@sio.on("send_message")
@acknowledged("send_message")
async def send_message(sid: str, data: Any) -> dict[str, Any]:
    message = await chat_relay.send_message(sid, data)
    return {"success": True, "messageId": message.id}


@sio.on("admin_take_chat")
@acknowledged("admin_take_chat")
async def admin_take_chat(sid: str, data: Any) -> dict[str, Any]:
    chat = await chat_relay.take_chat(sid, data)
    return {"success": True, "taken": chat is not None}


@sio.on("typing_start")
@acknowledged("typing_start")
async def typing_start(sid: str, data: Any) -> dict[str, Any]:
    await chat_relay.typing(sid, data, started=True)
    return {"success": True}


@sio.on("typing_stop")
@acknowledged("typing_stop")
async def typing_stop(sid: str, data: Any) -> dict[str, Any]:
    await chat_relay.typing(sid, data, started=False)
    return {"success": True}


@sio.on("request_history")
@acknowledged("request_history")
async def request_history(sid: str, data: Any) -> dict[str, Any]:
    history = await chat_relay.request_history(sid, data)
    return {"success": True, "count": len(history)}
