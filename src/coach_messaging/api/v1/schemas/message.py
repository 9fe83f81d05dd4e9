from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from coach_messaging.application.cursor import encode_cursor


class SendMessageRequest(BaseModel):
    body: str = Field(min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: UUID
    coach_id: UUID
    client_id: UUID
    sender_id: UUID
    body: str
    seq: int
    created_at: datetime
    read_at: datetime | None
    group_message_id: UUID | None = None
    recipient_id: UUID | None = None
    title: str | None = None
    requires_confirmation: bool = False
    confirmed_at: datetime | None = None
    workout_id: UUID | None = None

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cursor(self) -> str:
        """Pass as ``before`` to load the messages preceding this one."""
        return encode_cursor(self.created_at, self.seq)


class MarkReadResponse(BaseModel):
    updated: int


class UnreadResponse(BaseModel):
    unread: int
