"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import dataclasses
import uuid
from collections.abc import AsyncIterator, Collection
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from coach_messaging.application.dto.principal import Principal
from coach_messaging.application.repositories.outbox import OutboxRecord
from coach_messaging.domain.entities.client import ClientRef
from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.entities.message import Message, ThreadPosition
from coach_messaging.domain.entities.recipient import GroupMessageRecipient
from coach_messaging.domain.value_objects.enums import ActorKind, BroadcastStatus

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@dataclass
class FakeClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


def coach_principal(coach_id: UUID) -> Principal:
    return Principal(kind=ActorKind.COACH, subject_id=coach_id)


def client_principal(client_id: UUID) -> Principal:
    return Principal(kind=ActorKind.CLIENT, subject_id=client_id)


def admin_principal() -> Principal:
    return Principal(kind=ActorKind.ADMIN, subject_id=uuid.uuid4(), roles=["admin"])


@dataclass
class FakeRoster:
    clients: dict[UUID, ClientRef] = field(default_factory=dict)
    broken: bool = False

    def add_client(self, coach_id: UUID, *, active: bool = True) -> UUID:
        client_id = uuid.uuid4()
        self.clients[client_id] = ClientRef(id=client_id, coach_id=coach_id, is_active=active)
        return client_id

    def deactivate(self, client_id: UUID) -> None:
        self.clients[client_id] = dataclasses.replace(self.clients[client_id], is_active=False)

    async def get_client(self, client_id: UUID) -> ClientRef | None:
        return self.clients.get(client_id)

    async def list_active(self, coach_id: UUID) -> list[ClientRef]:
        if self.broken:
            raise RuntimeError("roster unavailable")
        return [c for c in self.clients.values() if c.coach_id == coach_id and c.is_active]


@dataclass
class FakeWorkouts:
    known: set[tuple[UUID, UUID]] = field(default_factory=set)

    async def exists(self, coach_id: UUID, workout_id: UUID) -> bool:
        return (coach_id, workout_id) in self.known


@dataclass
class FakeThreadWriter:
    positions: dict[tuple[UUID, UUID], ThreadPosition] = field(default_factory=dict)

    async def next_position(self, coach_id: UUID, client_id: UUID, now: datetime) -> ThreadPosition:
        last = self.positions.get((coach_id, client_id))
        if last is None:
            position = ThreadPosition(seq=1, created_at=now)
        else:
            position = ThreadPosition(
                seq=last.seq + 1,
                created_at=max(now, last.created_at + timedelta(microseconds=1)),
            )
        self.positions[(coach_id, client_id)] = position
        return position


@dataclass
class FakeMessageRepo:
    """Reader and writer over one in-memory list."""

    items: list[Message] = field(default_factory=list)
    fail_for: set[UUID] = field(default_factory=set)

    def thread(self, coach_id: UUID, client_id: UUID) -> list[Message]:
        rows = [m for m in self.items if m.coach_id == coach_id and m.client_id == client_id]
        return sorted(rows, key=lambda m: (m.created_at, m.seq))

    async def list_thread(
        self,
        coach_id: UUID,
        client_id: UUID,
        *,
        limit: int | None = None,
        before: tuple[datetime, int] | None = None,
    ) -> list[Message]:
        rows = self.thread(coach_id, client_id)
        if before is not None:
            rows = [m for m in rows if (m.created_at, m.seq) < before]
        if limit is not None:
            rows = rows[-limit:]
        return rows

    async def count_unread(self, coach_id: UUID, client_id: UUID, reader_id: UUID) -> int:
        return sum(
            1 for m in self.thread(coach_id, client_id)
            if m.sender_id != reader_id and m.read_at is None
        )

    async def get_by_recipient(self, recipient_id: UUID) -> Message | None:
        return next((m for m in self.items if m.recipient_id == recipient_id), None)

    async def add(self, message: Message) -> Message:
        if message.client_id in self.fail_for:
            raise RuntimeError("storage unavailable")
        self.items.append(message)
        return message

    async def mark_read(self, coach_id: UUID, client_id: UUID, reader_id: UUID, ts: datetime) -> int:
        updated = 0
        for i, m in enumerate(self.items):
            if (
                m.coach_id == coach_id
                and m.client_id == client_id
                and m.sender_id != reader_id
                and m.read_at is None
            ):
                self.items[i] = dataclasses.replace(m, read_at=ts)
                updated += 1
        return updated

    async def mark_confirmed(self, recipient_id: UUID, ts: datetime) -> None:
        for i, m in enumerate(self.items):
            if m.recipient_id == recipient_id and m.confirmed_at is None:
                self.items[i] = dataclasses.replace(m, confirmed_at=ts)


@dataclass
class FakeGroupMessageRepo:
    items: dict[UUID, GroupMessage] = field(default_factory=dict)

    async def get_by_id(self, group_message_id: UUID) -> GroupMessage | None:
        return self.items.get(group_message_id)

    async def list_for_coach(
        self, coach_id: UUID, *, status: str | None = None, limit: int = 50
    ) -> list[GroupMessage]:
        rows = [
            gm for gm in self.items.values()
            if gm.coach_id == coach_id and (status is None or gm.status == status)
        ]
        rows.sort(key=lambda gm: gm.scheduled_at, reverse=True)
        return rows[:limit]

    async def list_due(self, now: datetime, limit: int) -> list[GroupMessage]:
        rows = [
            gm for gm in self.items.values()
            if gm.status == BroadcastStatus.SCHEDULED and gm.scheduled_at <= now
        ]
        rows.sort(key=lambda gm: gm.scheduled_at)
        return rows[:limit]

    async def create(self, group_message: GroupMessage) -> GroupMessage:
        self.items[group_message.id] = group_message
        return group_message

    async def transition(
        self,
        group_message_id: UUID,
        from_statuses: Collection[str],
        to_status: str,
        now: datetime,
    ) -> GroupMessage | None:
        current = self.items.get(group_message_id)
        if current is None or current.status not in from_statuses:
            return None
        updated = dataclasses.replace(current, status=to_status, updated_at=now)
        self.items[group_message_id] = updated
        return updated

    async def expire_sending(self, cutoff: datetime, now: datetime) -> list[GroupMessage]:
        expired = []
        for gm in list(self.items.values()):
            if gm.status == BroadcastStatus.SENDING and gm.updated_at < cutoff:
                self.items[gm.id] = dataclasses.replace(gm, status=BroadcastStatus.FAILED, updated_at=now)
                expired.append(self.items[gm.id])
        return expired


@dataclass
class FakeRecipientRepo:
    items: dict[UUID, GroupMessageRecipient] = field(default_factory=dict)

    async def get_by_id(self, recipient_id: UUID) -> GroupMessageRecipient | None:
        return self.items.get(recipient_id)

    async def get_for_client(self, group_message_id: UUID, client_id: UUID) -> GroupMessageRecipient | None:
        return next(
            (
                r for r in self.items.values()
                if r.group_message_id == group_message_id and r.client_id == client_id
            ),
            None,
        )

    async def list_for_broadcast(self, group_message_id: UUID) -> list[GroupMessageRecipient]:
        return [r for r in self.items.values() if r.group_message_id == group_message_id]

    async def counts(self, group_message_id: UUID) -> tuple[int, int, int]:
        rows = await self.list_for_broadcast(group_message_id)
        return (
            len(rows),
            sum(1 for r in rows if r.sent_at is not None),
            sum(1 for r in rows if r.confirmed_at is not None),
        )

    async def create_if_not_exists(
        self, recipient: GroupMessageRecipient
    ) -> tuple[GroupMessageRecipient, bool]:
        existing = await self.get_for_client(recipient.group_message_id, recipient.client_id)
        if existing is not None:
            return existing, False
        self.items[recipient.id] = recipient
        return recipient, True

    async def mark_sent(self, recipient_id: UUID, ts: datetime) -> None:
        self.items[recipient_id] = dataclasses.replace(self.items[recipient_id], sent_at=ts)

    async def mark_confirmed(self, recipient_id: UUID, ts: datetime) -> bool:
        current = self.items.get(recipient_id)
        if current is None or current.confirmed_at is not None:
            return False
        self.items[recipient_id] = dataclasses.replace(current, confirmed_at=ts)
        return True


@dataclass
class FakeOutboxWriter:
    _records: list[dict[str, Any]] = field(default_factory=list)

    def event_types(self) -> list[str]:
        return [r["event_type"] for r in self._records]

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._records.append({
            "id": len(self._records) + 1,
            "event_type": event_type,
            "payload": payload,
            "status": "pending",
            "attempts": 0,
            "next_retry_at": None,
        })

    async def fetch_pending(self, batch_size: int, now: datetime) -> list[OutboxRecord]:
        rows = [
            r for r in self._records
            if r["status"] == "pending" and (r["next_retry_at"] is None or r["next_retry_at"] <= now)
        ]
        return [
            OutboxRecord(id=r["id"], event_type=r["event_type"], payload=r["payload"], attempts=r["attempts"])
            for r in rows[:batch_size]
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        for r in self._records:
            if r["id"] in ids:
                r["status"] = "sent"

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        for r in self._records:
            if r["id"] == record_id:
                r["attempts"] += 1
                r["next_retry_at"] = next_retry_at


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests.

    ``commit`` snapshots every store except the roster; ``rollback`` restores
    the last snapshot, discarding writes made since.
    """
    roster: FakeRoster = field(default_factory=FakeRoster)
    workouts: FakeWorkouts = field(default_factory=FakeWorkouts)
    messages: FakeMessageRepo = field(default_factory=FakeMessageRepo)
    threads_w: FakeThreadWriter = field(default_factory=FakeThreadWriter)
    group_messages: FakeGroupMessageRepo = field(default_factory=FakeGroupMessageRepo)
    recipients: FakeRecipientRepo = field(default_factory=FakeRecipientRepo)
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        self.messages_w = self.messages
        self.group_messages_w = self.group_messages
        self.recipients_w = self.recipients
        self._snapshot = self._take_snapshot()

    def _take_snapshot(self) -> tuple[Any, ...]:
        return (
            list(self.messages.items),
            dict(self.threads_w.positions),
            dict(self.group_messages.items),
            dict(self.recipients.items),
            [dict(r) for r in self.outbox._records],
        )

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1
        self._snapshot = self._take_snapshot()
        # Yield to the loop so concurrent callers interleave
        await asyncio.sleep(0)

    async def rollback(self) -> None:
        self.rollbacks += 1
        messages, positions, group_messages, recipients, records = self._snapshot
        self.messages.items[:] = messages
        self.threads_w.positions = dict(positions)
        self.group_messages.items = dict(group_messages)
        self.recipients.items = dict(recipients)
        self.outbox._records = [dict(r) for r in records]

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[FakeUoW]:
        """Stand-in for ``session_uow``: every scope shares this UoW's stores."""
        yield self


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def coach_id() -> UUID:
    return uuid.uuid4()


@pytest.fixture
def coach(coach_id: UUID) -> Principal:
    return coach_principal(coach_id)


def make_group_message(
    coach_id: UUID,
    audience: Any,
    *,
    body: str = "Leg day moved to 6pm",
    title: str | None = None,
    scheduled_at: datetime = T0,
    status: str = BroadcastStatus.SCHEDULED,
    require_confirmation: bool = False,
    workout_id: UUID | None = None,
) -> GroupMessage:
    return GroupMessage(
        id=uuid.uuid4(),
        coach_id=coach_id,
        title=title,
        body=body,
        scheduled_at=scheduled_at,
        audience=audience,
        require_confirmation=require_confirmation,
        workout_id=workout_id,
        status=status,
        created_at=T0,
        updated_at=T0,
    )
