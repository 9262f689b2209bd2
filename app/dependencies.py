"""Global dependencies for the application."""

from typing import Annotated

from fastapi import Depends

from app.realtime.socketio import chat_relay
from app.services.chat_relay import ChatRelay


def get_chat_relay() -> ChatRelay:
    """Get the process-wide chat relay bound to the Socket.IO server."""
    return chat_relay


ChatRelayDep = Annotated[ChatRelay, Depends(get_chat_relay)]
