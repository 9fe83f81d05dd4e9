from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import Protocol
from uuid import UUID

from coach_messaging.domain.entities.group_message import GroupMessage


class GroupMessageReader(Protocol):
    async def get_by_id(self, group_message_id: UUID) -> GroupMessage | None: ...

    async def list_for_coach(
        self, coach_id: UUID, *, status: str | None = None, limit: int = 50
    ) -> list[GroupMessage]: ...

    async def list_due(self, now: datetime, limit: int) -> list[GroupMessage]:
        """Scheduled broadcasts whose scheduled_at is at or before ``now``."""
        ...


class GroupMessageWriter(Protocol):
    async def create(self, group_message: GroupMessage) -> GroupMessage: ...

    async def transition(
        self,
        group_message_id: UUID,
        from_statuses: Collection[str],
        to_status: str,
        now: datetime,
    ) -> GroupMessage | None:
        """Compare-and-swap the status.

        Returns the updated broadcast, or None when its current status is not
        one of ``from_statuses``.
        """
        ...

    async def expire_sending(self, cutoff: datetime, now: datetime) -> list[GroupMessage]:
        """Move ``sending`` broadcasts last updated before ``cutoff`` to ``failed``."""
        ...
