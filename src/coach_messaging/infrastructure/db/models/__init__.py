"""Import all models so Base.metadata sees every table."""
from coach_messaging.infrastructure.db.models.group_message import (
    GroupMessageModel,
    GroupMessageRecipientModel,
)
from coach_messaging.infrastructure.db.models.message import MessageModel, ThreadModel
from coach_messaging.infrastructure.db.models.outbox import OutboxMessageModel
from coach_messaging.infrastructure.db.models.roster import ClientModel, WorkoutModel

__all__ = [
    "ClientModel",
    "GroupMessageModel",
    "GroupMessageRecipientModel",
    "MessageModel",
    "OutboxMessageModel",
    "ThreadModel",
    "WorkoutModel",
]
