"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.services.chat_relay import ChatRelay

TEST_EXPIRY_SECONDS = 0.05


# --- Relay transport double ---


class RecordingTransport:
    """Transport that records every delivery instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, Any]] = []

    async def send(self, connection_id: str, event: str, payload: Any) -> None:
        self.sent.append((connection_id, event, payload))

    def received(self, connection_id: str, event: str) -> list[Any]:
        """Payloads of one event delivered to one connection, in order."""
        return [
            payload
            for cid, name, payload in self.sent
            if cid == connection_id and name == event
        ]

    def events(self, connection_id: str) -> list[str]:
        """Names of every event delivered to one connection, in order."""
        return [name for cid, name, _ in self.sent if cid == connection_id]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def relay(transport: RecordingTransport) -> ChatRelay:
    """Relay with a short expiry window so timer behaviour can be observed."""
    return ChatRelay(
        transport,
        expiry_seconds=TEST_EXPIRY_SECONDS,
        admin_display_name="Admin PPO",
    )


# --- App override & client fixtures ---


def _get_app(relay: ChatRelay):  # type: ignore[no-untyped-def]
    """Import app lazily and point its relay dependency at the test relay."""
    from app.core.rate_limit import limiter
    from app.dependencies import get_chat_relay
    from app.main import app

    limiter.reset()
    app.dependency_overrides[get_chat_relay] = lambda: relay
    return app


@pytest.fixture
async def async_client(relay: ChatRelay) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for async tests."""
    application = _get_app(relay)
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    application.dependency_overrides.clear()
