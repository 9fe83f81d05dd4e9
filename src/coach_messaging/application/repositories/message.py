from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from coach_messaging.domain.entities.message import Message, ThreadPosition


class MessageReader(Protocol):
    async def list_thread(
        self,
        coach_id: UUID,
        client_id: UUID,
        *,
        limit: int | None = None,
        before: tuple[datetime, int] | None = None,
    ) -> list[Message]:
        """Return messages ascending by (created_at, seq).

        With ``limit`` only the most recent ``limit`` messages are returned,
        still in ascending order.
        """
        ...

    async def count_unread(
        self, coach_id: UUID, client_id: UUID, reader_id: UUID
    ) -> int: ...

    async def get_by_recipient(self, recipient_id: UUID) -> Message | None: ...


class MessageWriter(Protocol):
    async def add(self, message: Message) -> Message: ...

    async def mark_read(
        self, coach_id: UUID, client_id: UUID, reader_id: UUID, ts: datetime
    ) -> int:
        """Set read_at on the other party's unread messages. Return rows updated."""
        ...

    async def mark_confirmed(self, recipient_id: UUID, ts: datetime) -> None: ...


class ThreadWriter(Protocol):
    async def next_position(
        self, coach_id: UUID, client_id: UUID, now: datetime
    ) -> ThreadPosition:
        """Allocate (seq, created_at) for the next message of a thread.

        Holds the thread row until the transaction ends, so appends to one
        thread are serialized.
        """
        ...
