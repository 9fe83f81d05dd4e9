"""Outbox worker: polls pending outbox records, publishes via Redis Pub/Sub."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

import redis.asyncio as aioredis

from coach_messaging.application.ports.bus import EventPublisher
from coach_messaging.application.ports.clock import Clock, SystemClock
from coach_messaging.application.uow import UnitOfWork
from coach_messaging.config import settings
from coach_messaging.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from coach_messaging.infrastructure.db.uow import session_uow

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 300


def calc_backoff(attempts: int, now: datetime) -> datetime:
    delay = min(BASE_DELAY_SECONDS * (2 ** attempts), MAX_DELAY_SECONDS)
    return now + timedelta(seconds=delay)


async def run_outbox_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    publisher = RedisPubSubPublisher(redis)
    clock = SystemClock()

    logger.info(
        "Outbox worker started (poll=%.1fs, batch=%d, max_attempts=%d)",
        settings.OUTBOX_POLL_INTERVAL,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_ATTEMPTS,
    )

    try:
        while True:
            try:
                async with session_uow() as uow:
                    await process_batch(uow, publisher, clock)
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await redis.aclose()


async def process_batch(uow: UnitOfWork, publisher: EventPublisher, clock: Clock) -> int:
    """Publish one batch of pending events. Return how many were published."""
    now = clock.now()
    batch = await uow.outbox.fetch_pending(settings.OUTBOX_BATCH_SIZE, now)
    if not batch:
        return 0

    sent_ids: list[int] = []
    for record in batch:
        if record.attempts >= settings.OUTBOX_MAX_ATTEMPTS:
            logger.warning("Outbox record %d exceeded max attempts, skipping", record.id)
            continue
        try:
            await publisher.publish(
                settings.REDIS_EVENTS_CHANNEL,
                record.event_type,
                record.payload,
                event_id=record.id,
            )
            sent_ids.append(record.id)
        except Exception:
            logger.exception("Failed to publish outbox record %d", record.id)
            await uow.outbox.mark_failed(record.id, calc_backoff(record.attempts, now))

    await uow.outbox.mark_sent(sent_ids)
    await uow.commit()
    if sent_ids:
        logger.info("Published %d outbox records", len(sent_ids))
    return len(sent_ids)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
