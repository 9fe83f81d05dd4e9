from __future__ import annotations

from typing import Any

from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.entities.recipient import GroupMessageRecipient
from coach_messaging.domain.value_objects.audience import audience_from_dict, audience_to_dict
from coach_messaging.infrastructure.db.models.group_message import (
    GroupMessageModel,
    GroupMessageRecipientModel,
)


def model_to_entity(model: Any) -> GroupMessage:
    return GroupMessage(
        id=model.id,
        coach_id=model.coach_id,
        title=model.title,
        body=model.body,
        scheduled_at=model.scheduled_at,
        audience=audience_from_dict(model.audience),
        require_confirmation=model.require_confirmation,
        workout_id=model.workout_id,
        status=model.status,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: GroupMessage) -> GroupMessageModel:
    return GroupMessageModel(
        id=entity.id,
        coach_id=entity.coach_id,
        title=entity.title,
        body=entity.body,
        scheduled_at=entity.scheduled_at,
        audience=audience_to_dict(entity.audience),
        require_confirmation=entity.require_confirmation,
        workout_id=entity.workout_id,
        status=entity.status,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )


def recipient_to_entity(model: Any) -> GroupMessageRecipient:
    return GroupMessageRecipient(
        id=model.id,
        group_message_id=model.group_message_id,
        client_id=model.client_id,
        sent_at=model.sent_at,
        confirmed_at=model.confirmed_at,
        created_at=model.created_at,
    )


def recipient_to_model(entity: GroupMessageRecipient) -> GroupMessageRecipientModel:
    return GroupMessageRecipientModel(
        id=entity.id,
        group_message_id=entity.group_message_id,
        client_id=entity.client_id,
        sent_at=entity.sent_at,
        confirmed_at=entity.confirmed_at,
        created_at=entity.created_at,
    )
