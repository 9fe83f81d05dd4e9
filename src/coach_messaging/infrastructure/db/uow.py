from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession

from coach_messaging.infrastructure.db.repositories.group_message import (
    GroupMessageReaderRepo,
    GroupMessageWriterRepo,
    RecipientReaderRepo,
    RecipientWriterRepo,
)
from coach_messaging.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
    ThreadWriterRepo,
)
from coach_messaging.infrastructure.db.repositories.outbox import OutboxWriterRepo
from coach_messaging.infrastructure.db.repositories.roster import (
    ClientRosterRepo,
    WorkoutCatalogRepo,
)
from coach_messaging.infrastructure.db.session import AsyncSessionLocal


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.messages = MessageReaderRepo(session)
        self.messages_w = MessageWriterRepo(session)
        self.threads_w = ThreadWriterRepo(session)
        self.group_messages = GroupMessageReaderRepo(session)
        self.group_messages_w = GroupMessageWriterRepo(session)
        self.recipients = RecipientReaderRepo(session)
        self.recipients_w = RecipientWriterRepo(session)
        self.roster = ClientRosterRepo(session)
        self.workouts = WorkoutCatalogRepo(session)
        self.outbox = OutboxWriterRepo(session)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()


@asynccontextmanager
async def session_uow() -> AsyncIterator[SqlAlchemyUoW]:
    """Fresh session + UoW, for workers that run outside a request."""
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUoW(session) as uow:
            yield uow
