from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    """One entry of a coach/client thread.

    Broadcast-linked messages carry the originating group message and
    delivery record plus a snapshot of the broadcast title.
    """

    id: UUID
    coach_id: UUID
    client_id: UUID
    sender_id: UUID
    body: str
    seq: int
    created_at: datetime
    read_at: datetime | None = None
    group_message_id: UUID | None = None
    recipient_id: UUID | None = None
    title: str | None = None
    requires_confirmation: bool = False
    confirmed_at: datetime | None = None
    workout_id: UUID | None = None

    @property
    def is_broadcast(self) -> bool:
        return self.group_message_id is not None


@dataclass(frozen=True, slots=True)
class ThreadPosition:
    """Slot allocated for the next message of a thread."""

    seq: int
    created_at: datetime
