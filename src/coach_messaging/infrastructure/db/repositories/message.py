from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coach_messaging.domain.entities.message import Message, ThreadPosition
from coach_messaging.infrastructure.db.mappers import message as mapper
from coach_messaging.infrastructure.db.models.message import MessageModel, ThreadModel

_TICK = timedelta(microseconds=1)


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_thread(
        self,
        coach_id: UUID,
        client_id: UUID,
        *,
        limit: int | None = None,
        before: tuple[datetime, int] | None = None,
    ) -> list[Message]:
        stmt = select(MessageModel).where(
            MessageModel.coach_id == coach_id,
            MessageModel.client_id == client_id,
        )
        if before:
            ts, seq = before
            stmt = stmt.where(
                (MessageModel.created_at < ts)
                | ((MessageModel.created_at == ts) & (MessageModel.seq < seq))
            )

        if limit is None:
            stmt = stmt.order_by(MessageModel.created_at.asc(), MessageModel.seq.asc())
            result = await self._session.execute(stmt)
            return [mapper.model_to_entity(m) for m in result.scalars().all()]

        # Newest page first, then flipped back to ascending
        stmt = stmt.order_by(MessageModel.created_at.desc(), MessageModel.seq.desc()).limit(limit)
        result = await self._session.execute(stmt)
        rows = [mapper.model_to_entity(m) for m in result.scalars().all()]
        rows.reverse()
        return rows

    async def count_unread(self, coach_id: UUID, client_id: UUID, reader_id: UUID) -> int:
        stmt = select(func.count()).select_from(MessageModel).where(
            MessageModel.coach_id == coach_id,
            MessageModel.client_id == client_id,
            MessageModel.sender_id != reader_id,
            MessageModel.read_at.is_(None),
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def get_by_recipient(self, recipient_id: UUID) -> Message | None:
        stmt = select(MessageModel).where(MessageModel.recipient_id == recipient_id).limit(1)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def mark_read(
        self,
        coach_id: UUID,
        client_id: UUID,
        reader_id: UUID,
        ts: datetime,
    ) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.coach_id == coach_id,
                MessageModel.client_id == client_id,
                MessageModel.sender_id != reader_id,
                MessageModel.read_at.is_(None),
            )
            .values(read_at=ts)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def mark_confirmed(self, recipient_id: UUID, ts: datetime) -> None:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.recipient_id == recipient_id,
                MessageModel.confirmed_at.is_(None),
            )
            .values(confirmed_at=ts)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)


class ThreadWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_position(
        self,
        coach_id: UUID,
        client_id: UUID,
        now: datetime,
    ) -> ThreadPosition:
        insert_stmt = pg_insert(ThreadModel).values(
            coach_id=coach_id,
            client_id=client_id,
            last_seq=1,
            last_message_at=now,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[ThreadModel.coach_id, ThreadModel.client_id],
            set_={
                "last_seq": ThreadModel.last_seq + 1,
                "last_message_at": func.greatest(
                    insert_stmt.excluded.last_message_at,
                    ThreadModel.last_message_at + _TICK,
                ),
            },
        ).returning(ThreadModel.last_seq, ThreadModel.last_message_at)
        result = await self._session.execute(stmt)
        row = result.one()
        return ThreadPosition(seq=row.last_seq, created_at=row.last_message_at)
