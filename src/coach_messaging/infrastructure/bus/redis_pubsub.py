"""Redis Pub/Sub publisher for messaging events."""
from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as aioredis

from coach_messaging.infrastructure.bus.serializer import serialize_event

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    """EventPublisher over a Redis channel. Messages with no subscriber are dropped by Redis."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(
        self,
        channel: str,
        event_type: str,
        data: dict[str, Any],
        *,
        event_id: int,
    ) -> None:
        receivers = await self._redis.publish(channel, serialize_event(event_id, event_type, data))
        if not receivers:
            logger.debug("Event %d (%s) on %s had no subscribers", event_id, event_type, channel)
