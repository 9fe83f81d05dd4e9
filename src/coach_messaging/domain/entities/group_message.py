from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from coach_messaging.domain.value_objects.audience import Audience


@dataclass(frozen=True, slots=True)
class GroupMessage:
    id: UUID
    coach_id: UUID
    title: str | None
    body: str
    scheduled_at: datetime
    audience: Audience
    require_confirmation: bool
    workout_id: UUID | None
    status: str
    created_at: datetime
    updated_at: datetime
