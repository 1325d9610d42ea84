"""Redis Pub/Sub fan-out: publisher plus per-process subscriber task."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from team_chat.application.dto.events import BroadcastEvent
from team_chat.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    """Implements application.ports.bus.EventPublisher.

    Every topic travels over one Redis channel; the topic rides in the
    envelope so each process can route it to its own WebSocket subscribers.
    """

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def publish(self, topic: str, event_type: str, payload: dict[str, Any]) -> None:
        raw = serialize_event(topic, event_type, payload)
        receivers = await self._redis.publish(self._channel, raw)
        logger.debug("Published %s on %s (receivers=%s)", event_type, topic, receivers)


OnEventCallback = Callable[[BroadcastEvent], Coroutine[Any, Any, None]]


class RedisPubSubSubscriber:
    """Background task that listens to the fan-out channel and dispatches events."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnEventCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Redis Pub/Sub subscriber stopped")

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = deserialize_event(message["data"])
                except (ValueError, KeyError):
                    logger.warning("Dropping malformed fan-out envelope")
                    continue
                try:
                    await self._callback(event)
                except Exception:
                    logger.exception("Error dispatching %s on %s", event.event_type, event.topic)
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
