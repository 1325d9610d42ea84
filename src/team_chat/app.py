from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from team_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from team_chat.api.middleware.metrics import RequestTimingMiddleware
from team_chat.api.v1.routers import channels, dms, health, messages, read_state, users, ws
from team_chat.application.dto.events import BroadcastEvent
from team_chat.application.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TransientWriteFailure,
    UnknownIdentity,
    ValidationError,
)
from team_chat.config import settings
from team_chat.infrastructure.bus.redis_pubsub import (
    RedisPubSubPublisher,
    RedisPubSubSubscriber,
)

logger = logging.getLogger(__name__)


async def _on_pubsub_event(event: BroadcastEvent) -> None:
    """Dispatch a fan-out event to this process's WS subscribers of its topic."""
    delivered = await ws.get_manager().broadcast_to_topic(
        event.topic, event.event_type, event.payload,
    )
    logger.debug("Dispatched %s on %s to %d socket(s)", event.event_type, event.topic, delivered)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    app.state.publisher = RedisPubSubPublisher(app.state.redis, settings.REDIS_PUBSUB_CHANNEL)
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_PUBSUB_CHANNEL,
        _on_pubsub_event,
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber

    yield

    await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Team Chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(channels.router)
    app.include_router(messages.router)
    app.include_router(dms.router)
    app.include_router(read_state.router)
    app.include_router(users.router)
    app.include_router(ws.router)

    return app


_STATUS_BY_ERROR: dict[type[AppError], int] = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ConflictError: 409,
    ValidationError: 422,
    UnknownIdentity: 401,
    TransientWriteFailure: 503,
}


async def _app_error(_req: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, AppError)
    # Subclasses such as InvalidReply take their parent's status.
    status = next(
        code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)
    )
    return JSONResponse(status_code=status, content={"detail": exc.detail})


async def _db_unavailable(req: Request, exc: Exception) -> JSONResponse:
    logger.warning("Storage unavailable on %s %s: %s", req.method, req.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage temporarily unavailable"})


def _register_exception_handlers(app: FastAPI) -> None:
    for error_cls in _STATUS_BY_ERROR:
        app.add_exception_handler(error_cls, _app_error)
    app.add_exception_handler(OperationalError, _db_unavailable)
