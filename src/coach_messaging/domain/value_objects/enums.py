from __future__ import annotations

from enum import StrEnum


class ActorKind(StrEnum):
    COACH = "coach"
    CLIENT = "client"
    ADMIN = "admin"


class BroadcastStatus(StrEnum):
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"
    CANCELED = "canceled"


class AudienceType(StrEnum):
    ALL = "all"
    CLIENTS = "clients"
