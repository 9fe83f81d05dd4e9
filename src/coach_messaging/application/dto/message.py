from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class NewMessageDTO:
    """Fields of a message before the thread assigns its position."""

    coach_id: UUID
    client_id: UUID
    sender_id: UUID
    body: str
    group_message_id: UUID | None = None
    recipient_id: UUID | None = None
    title: str | None = None
    requires_confirmation: bool = False
    workout_id: UUID | None = None
