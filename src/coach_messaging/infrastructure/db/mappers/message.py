from __future__ import annotations

from typing import Any

from coach_messaging.domain.entities.message import Message
from coach_messaging.infrastructure.db.models.message import MessageModel


def model_to_entity(model: Any) -> Message:
    """Accepts a MessageModel or a Core row with the same columns."""
    return Message(
        id=model.id,
        coach_id=model.coach_id,
        client_id=model.client_id,
        sender_id=model.sender_id,
        body=model.body,
        seq=model.seq,
        created_at=model.created_at,
        read_at=model.read_at,
        group_message_id=model.group_message_id,
        recipient_id=model.recipient_id,
        title=model.title,
        requires_confirmation=model.requires_confirmation,
        confirmed_at=model.confirmed_at,
        workout_id=model.workout_id,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        coach_id=entity.coach_id,
        client_id=entity.client_id,
        sender_id=entity.sender_id,
        body=entity.body,
        seq=entity.seq,
        created_at=entity.created_at,
        read_at=entity.read_at,
        group_message_id=entity.group_message_id,
        recipient_id=entity.recipient_id,
        title=entity.title,
        requires_confirmation=entity.requires_confirmation,
        confirmed_at=entity.confirmed_at,
        workout_id=entity.workout_id,
    )
