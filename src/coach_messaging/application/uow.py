from __future__ import annotations

from typing import Protocol

from coach_messaging.application.repositories.group_message import (
    GroupMessageReader,
    GroupMessageWriter,
)
from coach_messaging.application.repositories.message import (
    MessageReader,
    MessageWriter,
    ThreadWriter,
)
from coach_messaging.application.repositories.outbox import OutboxWriter
from coach_messaging.application.repositories.recipient import (
    RecipientReader,
    RecipientWriter,
)
from coach_messaging.application.repositories.roster import ClientRoster, WorkoutCatalog


class UnitOfWork(Protocol):
    messages: MessageReader
    messages_w: MessageWriter
    threads_w: ThreadWriter
    group_messages: GroupMessageReader
    group_messages_w: GroupMessageWriter
    recipients: RecipientReader
    recipients_w: RecipientWriter
    roster: ClientRoster
    workouts: WorkoutCatalog
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
