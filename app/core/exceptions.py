"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        """Render the error body shared by HTTP responses and socket acks."""
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
            },
        }


# --- Bad Request (400) ---


class InvalidPayloadError(AppException):
    """Inbound event payload is missing fields or malformed."""

    def __init__(self, message: str = "Invalid event payload") -> None:
        super().__init__(message=message, code="INVALID_PAYLOAD", status_code=400)


# --- Authorization (403) ---


class AuthorizationError(AppException):
    """Insufficient permissions."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message=message, code="AUTHORIZATION_ERROR", status_code=403)


# --- Conflict (409) ---


class NotJoinedError(AppException):
    """Connection sent an event before joining a room."""

    def __init__(self) -> None:
        super().__init__(
            message="Connection has not joined a chat room",
            code="NOT_JOINED",
            status_code=409,
        )


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation errors in the unified error shape."""
    return JSONResponse(
        status_code=422,
        content={
            "status": 422,
            "message": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
        },
    )
