"""Integration tests for the chat HTTP endpoints."""

from httpx import AsyncClient

from app.services.chat_relay import ChatRelay
from tests.conftest import RecordingTransport


async def _client_conversation(relay: ChatRelay) -> None:
    await relay.join("sid-c1", {"participantId": "c1", "displayName": "Alice"})
    await relay.send_message("sid-c1", {"body": "a"})
    await relay.send_message("sid-c1", {"body": "b"})


class TestActiveChatsEndpoint:
    """Tests for GET /api/chat/active."""

    async def test_empty(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/chat/active")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data == {"activeChats": [], "count": 0}

    async def test_lists_active_chats(
        self, async_client: AsyncClient, relay: ChatRelay
    ) -> None:
        await _client_conversation(relay)

        resp = await async_client.get("/api/chat/active")

        data = resp.json()["data"]
        assert data["count"] == 1
        chat = data["activeChats"][0]
        assert chat["clientId"] == "c1"
        assert chat["clientName"] == "Alice"
        assert chat["status"] == "active"


class TestHistoryEndpoint:
    """Tests for GET /api/chat/history/{client_id}."""

    async def test_returns_ordered_history(
        self, async_client: AsyncClient, relay: ChatRelay
    ) -> None:
        await _client_conversation(relay)

        resp = await async_client.get("/api/chat/history/c1")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["clientId"] == "c1"
        assert data["count"] == 2
        assert [m["body"] for m in data["messages"]] == ["a", "b"]
        assert data["messages"][0]["senderRole"] == "client"

    async def test_unknown_client_is_empty(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/chat/history/nobody")

        assert resp.status_code == 200
        assert resp.json()["data"]["messages"] == []


class TestEmergencyEndpoint:
    """Tests for POST /api/chat/emergency."""

    async def test_alerts_admins(
        self,
        async_client: AsyncClient,
        relay: ChatRelay,
        transport: RecordingTransport,
    ) -> None:
        await relay.join("sid-a1", {"isAdmin": True})

        resp = await async_client.post(
            "/api/chat/emergency",
            json={"clientId": "c1", "message": "intruder", "location": "Gate 3"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Emergency alert sent to all available PPOs"
        assert body["data"]["alertId"].startswith("CHAT_EMG_")
        assert body["data"]["dispatchStatus"] == "alert_sent"
        alerts = transport.received("sid-a1", "emergency_alert")
        assert len(alerts) == 1
        assert alerts[0]["message"] == "intruder"

    async def test_missing_client_id_is_validation_error(
        self, async_client: AsyncClient
    ) -> None:
        resp = await async_client.post(
            "/api/chat/emergency", json={"message": "intruder"}
        )

        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"
