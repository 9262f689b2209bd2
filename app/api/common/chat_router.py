"""Live chat HTTP endpoints backed by the in-memory relay state."""

from fastapi import APIRouter, Request

from app.core.config import settings
from app.core.rate_limit import limiter
from app.dependencies import ChatRelayDep
from app.schemas.relay_schema import (
    ActiveChatsResponse,
    ChatHistoryResponse,
    EmergencyRequest,
    EmergencyResponse,
)
from app.schemas.response_schema import ApiResponse, ErrorResponse, success_response

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("/active", response_model=ApiResponse[ActiveChatsResponse])
async def list_active_chats(relay: ChatRelayDep) -> dict:
    """List every active or recently disconnected chat."""
    chats = relay.list_active_chats()
    return success_response(ActiveChatsResponse(active_chats=chats, count=len(chats)))


@router.get("/history/{client_id}", response_model=ApiResponse[ChatHistoryResponse])
async def get_chat_history(client_id: str, relay: ChatRelayDep) -> dict:
    """Return the stored messages of one conversation."""
    messages = relay.get_history(client_id)
    return success_response(
        ChatHistoryResponse(
            client_id=client_id,
            messages=messages,
            count=len(messages),
        )
    )


@router.post(
    "/emergency",
    response_model=ApiResponse[EmergencyResponse],
    responses={
        422: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)
@limiter.limit(settings.chat.emergency_rate_limit)
async def send_emergency_alert(
    request: Request,
    body: EmergencyRequest,
    relay: ChatRelayDep,
) -> dict:
    """Alert every connected admin about an emergency outside a live chat."""
    alert_id = await relay.broadcast_emergency(
        client_id=body.client_id,
        message=body.message,
        location=body.location,
    )
    return success_response(
        EmergencyResponse(alert_id=alert_id),
        message="Emergency alert sent to all available PPOs",
    )
