"""Tests for custom exception classes."""

from app.core.exceptions import (
    AppException,
    AuthorizationError,
    InvalidPayloadError,
    NotJoinedError,
)


class TestExceptions:
    """Verify exception status codes and messages."""

    def test_app_exception_defaults(self) -> None:
        exc = AppException(message="err", code="ERR")
        assert exc.status_code == 400
        assert exc.code == "ERR"

    def test_invalid_payload_error(self) -> None:
        exc = InvalidPayloadError("clientId is required")
        assert exc.status_code == 400
        assert exc.code == "INVALID_PAYLOAD"
        assert exc.message == "clientId is required"

    def test_authorization_error(self) -> None:
        exc = AuthorizationError()
        assert exc.status_code == 403

    def test_not_joined_error(self) -> None:
        exc = NotJoinedError()
        assert exc.status_code == 409
        assert exc.code == "NOT_JOINED"

    def test_to_dict(self) -> None:
        assert NotJoinedError().to_dict() == {
            "success": False,
            "error": {
                "code": "NOT_JOINED",
                "message": "Connection has not joined a chat room",
            },
        }
