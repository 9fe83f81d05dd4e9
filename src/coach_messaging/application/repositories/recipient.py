from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from coach_messaging.domain.entities.recipient import GroupMessageRecipient


class RecipientReader(Protocol):
    async def get_by_id(self, recipient_id: UUID) -> GroupMessageRecipient | None: ...

    async def get_for_client(
        self, group_message_id: UUID, client_id: UUID
    ) -> GroupMessageRecipient | None: ...

    async def list_for_broadcast(
        self, group_message_id: UUID
    ) -> list[GroupMessageRecipient]: ...

    async def counts(self, group_message_id: UUID) -> tuple[int, int, int]:
        """Return (recipients, sent, confirmed) for a broadcast."""
        ...


class RecipientWriter(Protocol):
    async def create_if_not_exists(
        self, recipient: GroupMessageRecipient
    ) -> tuple[GroupMessageRecipient, bool]:
        """Insert a delivery record. On (group_message_id, client_id) conflict return the existing one."""
        ...

    async def mark_sent(self, recipient_id: UUID, ts: datetime) -> None: ...

    async def mark_confirmed(self, recipient_id: UUID, ts: datetime) -> bool:
        """Set confirmed_at if still null. Return True when a row changed."""
        ...
