from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field

from coach_messaging.application.dto.broadcast import BroadcastStatusDTO, TriggerOutcome
from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.value_objects.audience import (
    AllClients,
    Audience,
    SelectedClients,
)


class AllClientsAudience(BaseModel):
    type: Literal["all"] = "all"

    def to_domain(self) -> Audience:
        return AllClients()


class SelectedClientsAudience(BaseModel):
    type: Literal["clients"] = "clients"
    ids: list[UUID] = Field(min_length=1)

    def to_domain(self) -> Audience:
        return SelectedClients(ids=tuple(self.ids))


AudienceSchema = Annotated[
    Union[AllClientsAudience, SelectedClientsAudience],
    Field(discriminator="type"),
]


def audience_to_schema(audience: Audience) -> AllClientsAudience | SelectedClientsAudience:
    if isinstance(audience, SelectedClients):
        return SelectedClientsAudience(ids=list(audience.ids))
    return AllClientsAudience()


class ScheduleBroadcastRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    body: str = Field(min_length=1, max_length=5000)
    scheduled_at: datetime | None = None
    audience: AudienceSchema
    require_confirmation: bool = False
    workout_id: UUID | None = None


class GroupMessageResponse(BaseModel):
    id: UUID
    coach_id: UUID
    title: str | None
    body: str
    scheduled_at: datetime
    audience: AudienceSchema
    require_confirmation: bool
    workout_id: UUID | None
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, gm: GroupMessage) -> GroupMessageResponse:
        return cls(
            id=gm.id,
            coach_id=gm.coach_id,
            title=gm.title,
            body=gm.body,
            scheduled_at=gm.scheduled_at,
            audience=audience_to_schema(gm.audience),
            require_confirmation=gm.require_confirmation,
            workout_id=gm.workout_id,
            status=str(gm.status),
            created_at=gm.created_at,
            updated_at=gm.updated_at,
        )


class SendNowResponse(GroupMessageResponse):
    delivered: int
    skipped: int
    failed: list[UUID]

    @classmethod
    def from_outcome(cls, outcome: TriggerOutcome) -> SendNowResponse:
        base = GroupMessageResponse.from_entity(outcome.group_message)
        return cls(
            **base.model_dump(),
            delivered=outcome.result.delivered,
            skipped=outcome.result.skipped,
            failed=list(outcome.result.failed),
        )


class BroadcastStatusResponse(BaseModel):
    id: UUID
    status: str
    recipient_count: int
    sent_count: int
    confirmed_count: int

    @classmethod
    def from_dto(cls, dto: BroadcastStatusDTO) -> BroadcastStatusResponse:
        return cls(
            id=dto.id,
            status=str(dto.status),
            recipient_count=dto.recipient_count,
            sent_count=dto.sent_count,
            confirmed_count=dto.confirmed_count,
        )


class RecipientResponse(BaseModel):
    id: UUID
    group_message_id: UUID
    client_id: UUID
    sent_at: datetime | None
    confirmed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ConfirmResponse(BaseModel):
    confirmed_at: datetime
