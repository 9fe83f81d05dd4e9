from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.value_objects.audience import Audience
from coach_messaging.domain.value_objects.enums import BroadcastStatus


@dataclass(frozen=True, slots=True)
class ScheduleBroadcastDTO:
    body: str
    audience: Audience
    title: str | None = None
    scheduled_at: datetime | None = None
    require_confirmation: bool = False
    workout_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class FanoutResult:
    delivered: int = 0
    skipped: int = 0
    failed: list[UUID] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(frozen=True, slots=True)
class TriggerOutcome:
    group_message: GroupMessage
    result: FanoutResult


@dataclass(frozen=True, slots=True)
class BroadcastStatusDTO:
    id: UUID
    status: BroadcastStatus
    recipient_count: int
    sent_count: int
    confirmed_count: int
