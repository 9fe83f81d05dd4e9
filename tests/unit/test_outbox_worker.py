from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from coach_messaging.config import settings
from coach_messaging.infrastructure.bus.serializer import deserialize_event, serialize_event
from coach_messaging.workers.outbox_worker import calc_backoff, process_batch
from tests.conftest import T0


class RecordingPublisher:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.published: list[tuple[str, int, str, dict]] = []
        self._fail_on = fail_on or set()

    async def publish(self, channel: str, event_type: str, data: dict, *, event_id: int) -> None:
        if event_type in self._fail_on:
            raise ConnectionError("redis down")
        self.published.append((channel, event_id, event_type, data))


@pytest.mark.asyncio
async def test_process_batch_publishes_pending(uow, clock):
    await uow.outbox.add("message.sent", {"message_id": "m1"})
    await uow.outbox.add("thread.read", {"marked": 2})
    publisher = RecordingPublisher()

    assert await process_batch(uow, publisher, clock) == 2

    assert [e[2] for e in publisher.published] == ["message.sent", "thread.read"]
    assert publisher.published[0] == (
        settings.REDIS_EVENTS_CHANNEL, 1, "message.sent", {"message_id": "m1"},
    )
    assert await process_batch(uow, publisher, clock) == 0


@pytest.mark.asyncio
async def test_failed_publish_is_retried_after_backoff(uow, clock):
    await uow.outbox.add("broadcast.sent", {"delivered": 3})
    failing = RecordingPublisher(fail_on={"broadcast.sent"})

    assert await process_batch(uow, failing, clock) == 0
    assert uow.outbox._records[0]["attempts"] == 1
    assert uow.outbox._records[0]["next_retry_at"] == calc_backoff(0, clock.now())

    ok = RecordingPublisher()
    assert await process_batch(uow, ok, clock) == 0
    clock.advance(minutes=1)
    assert await process_batch(uow, ok, clock) == 1


def test_backoff_is_capped():
    assert calc_backoff(0, T0) == T0 + timedelta(seconds=5)
    assert calc_backoff(3, T0) == T0 + timedelta(seconds=40)
    assert calc_backoff(20, T0) == T0 + timedelta(seconds=300)


def test_envelope_carries_outbox_id():
    raw = serialize_event(7, "broadcast.confirmed", {"recipient_id": uuid.UUID(int=1), "at": T0})

    event_id, event_type, data = deserialize_event(raw)

    assert (event_id, event_type) == (7, "broadcast.confirmed")
    assert data == {"recipient_id": str(uuid.UUID(int=1)), "at": T0.isoformat()}
