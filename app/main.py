"""FastAPI application entry point.

Serve `app.main:asgi_app`, which mounts the Socket.IO server in front of the
FastAPI routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import socketio
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.common.chat_router import router as chat_router
from app.core.config import settings
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from app.core.middleware import RequestLoggingMiddleware
from app.core.rate_limit import limiter
from app.dependencies import ChatRelayDep
from app.realtime.socketio import chat_relay, sio
from app.schemas.response_schema import ApiResponse, success_response

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        socketio_path=settings.chat.socketio_path,
        chat_expiry_seconds=settings.chat.expiry_seconds,
    )
    yield
    chat_relay.shutdown()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Live chat relay between website clients and the security desk",
    version=settings.app.version,
    lifespan=lifespan,
    debug=settings.app.debug,
)

app.state.limiter = limiter


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={
            "status": 429,
            "message": "Rate limit exceeded",
            "code": "RATE_LIMIT_EXCEEDED",
        },
    )


# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=(
        ["*"] if settings.app.is_development else settings.server.cors_origins_list
    ),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check(relay: ChatRelayDep) -> dict:
    """Health check endpoint."""
    return success_response(
        {
            "status": "healthy",
            "activeChats": len(relay.list_active_chats()),
            "connections": len(relay.registry),
        }
    )


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": settings.app.version,
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(chat_router)

# Socket.IO handles its own path; everything else falls through to FastAPI.
asgi_app = socketio.ASGIApp(
    sio,
    other_asgi_app=app,
    socketio_path=settings.chat.socketio_path,
)
