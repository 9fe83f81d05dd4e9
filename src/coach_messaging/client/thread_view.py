"""Polling thread view with optimistic sends.

Optimistic entries are never merged with server data. A pending entry is
dropped as soon as its send settles (success or failure) or as soon as a
refresh that started after it was issued completes; from then on the server
list is the only source of truth.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from coach_messaging.api.v1.schemas.message import MessageResponse

logger = logging.getLogger(__name__)


class ThreadSource(Protocol):
    async def list_thread(
        self, coach_id: uuid.UUID, client_id: uuid.UUID, *, limit: int | None = None
    ) -> list[MessageResponse]: ...

    async def send_message(
        self, coach_id: uuid.UUID, client_id: uuid.UUID, body: str
    ) -> MessageResponse: ...


@dataclass(frozen=True, slots=True)
class PendingMessage:
    local_id: str
    sender_id: uuid.UUID
    body: str
    created_at: datetime
    ticket: int
    pending: bool = True


ThreadEntry = MessageResponse | PendingMessage


class ThreadView:
    def __init__(
        self,
        source: ThreadSource,
        coach_id: uuid.UUID,
        client_id: uuid.UUID,
        sender_id: uuid.UUID,
        *,
        limit: int | None = None,
    ) -> None:
        self._source = source
        self._coach_id = coach_id
        self._client_id = client_id
        self._sender_id = sender_id
        self._limit = limit
        self._messages: list[MessageResponse] = []
        self._pending: dict[str, PendingMessage] = {}
        self._tickets = itertools.count(1)
        # Ticket of the newest state applied to _messages; older refreshes are dropped.
        self._applied = 0

    @property
    def entries(self) -> list[ThreadEntry]:
        return [*self._messages, *self._pending.values()]

    @property
    def pending(self) -> list[PendingMessage]:
        return list(self._pending.values())

    async def refresh(self) -> list[ThreadEntry]:
        started = next(self._tickets)
        messages = await self._source.list_thread(
            self._coach_id, self._client_id, limit=self._limit,
        )
        if started < self._applied:
            return self.entries
        self._applied = started
        self._messages = list(messages)
        for local_id, entry in list(self._pending.items()):
            if entry.ticket < started:
                del self._pending[local_id]
        return self.entries

    async def send(self, body: str) -> MessageResponse:
        entry = PendingMessage(
            local_id=f"optimistic-{uuid.uuid4()}",
            sender_id=self._sender_id,
            body=body,
            created_at=datetime.now(timezone.utc),
            ticket=next(self._tickets),
        )
        self._pending[entry.local_id] = entry
        try:
            message = await self._source.send_message(self._coach_id, self._client_id, body)
        finally:
            self._pending.pop(entry.local_id, None)

        if all(m.id != message.id for m in self._messages):
            self._messages.append(message)
            self._messages.sort(key=lambda m: (m.created_at, m.seq))
        self._applied = max(self._applied, entry.ticket)

        try:
            await self.refresh()
        except Exception:
            # The send itself succeeded; the next poll catches up.
            logger.warning("Refresh after send failed for %s/%s", self._coach_id, self._client_id, exc_info=True)
        return message

    async def poll(self, interval: float, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await self.refresh()
            except Exception:
                logger.exception("Thread refresh failed for %s/%s", self._coach_id, self._client_id)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except TimeoutError:
                pass
