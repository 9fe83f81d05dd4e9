from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.entities.recipient import GroupMessageRecipient
from coach_messaging.domain.value_objects.enums import BroadcastStatus
from coach_messaging.infrastructure.db.mappers import group_message as mapper
from coach_messaging.infrastructure.db.models.group_message import (
    GroupMessageModel,
    GroupMessageRecipientModel,
)

_group_messages = GroupMessageModel.__table__
_recipients = GroupMessageRecipientModel.__table__


class GroupMessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, group_message_id: UUID) -> GroupMessage | None:
        # Status is changed with Core updates; never trust the identity map here.
        stmt = (
            select(GroupMessageModel)
            .where(GroupMessageModel.id == group_message_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_coach(
        self,
        coach_id: UUID,
        *,
        status: str | None = None,
        limit: int = 50,
    ) -> list[GroupMessage]:
        stmt = select(GroupMessageModel).where(GroupMessageModel.coach_id == coach_id)
        if status:
            stmt = stmt.where(GroupMessageModel.status == status)
        stmt = stmt.order_by(GroupMessageModel.scheduled_at.desc()).limit(limit)
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_due(self, now: datetime, limit: int) -> list[GroupMessage]:
        stmt = (
            select(GroupMessageModel)
            .where(
                GroupMessageModel.status == BroadcastStatus.SCHEDULED,
                GroupMessageModel.scheduled_at <= now,
            )
            .order_by(GroupMessageModel.scheduled_at.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class GroupMessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, group_message: GroupMessage) -> GroupMessage:
        model = mapper.entity_to_model(group_message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def transition(
        self,
        group_message_id: UUID,
        from_statuses: Collection[str],
        to_status: str,
        now: datetime,
    ) -> GroupMessage | None:
        stmt = (
            update(_group_messages)
            .where(
                _group_messages.c.id == group_message_id,
                _group_messages.c.status.in_([str(s) for s in from_statuses]),
            )
            .values(status=str(to_status), updated_at=now)
            .returning(*_group_messages.c)
        )
        result = await self._session.execute(stmt)
        row = result.first()
        return mapper.model_to_entity(row) if row else None

    async def expire_sending(self, cutoff: datetime, now: datetime) -> list[GroupMessage]:
        stmt = (
            update(_group_messages)
            .where(
                _group_messages.c.status == BroadcastStatus.SENDING.value,
                _group_messages.c.updated_at < cutoff,
            )
            .values(status=BroadcastStatus.FAILED.value, updated_at=now)
            .returning(*_group_messages.c)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(row) for row in result.all()]


class RecipientReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, recipient_id: UUID) -> GroupMessageRecipient | None:
        stmt = select(_recipients).where(_recipients.c.id == recipient_id)
        result = await self._session.execute(stmt)
        row = result.first()
        return mapper.recipient_to_entity(row) if row else None

    async def get_for_client(
        self,
        group_message_id: UUID,
        client_id: UUID,
    ) -> GroupMessageRecipient | None:
        stmt = select(_recipients).where(
            _recipients.c.group_message_id == group_message_id,
            _recipients.c.client_id == client_id,
        )
        result = await self._session.execute(stmt)
        row = result.first()
        return mapper.recipient_to_entity(row) if row else None

    async def list_for_broadcast(self, group_message_id: UUID) -> list[GroupMessageRecipient]:
        stmt = (
            select(_recipients)
            .where(_recipients.c.group_message_id == group_message_id)
            .order_by(_recipients.c.created_at.asc(), _recipients.c.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.recipient_to_entity(r) for r in result.all()]

    async def counts(self, group_message_id: UUID) -> tuple[int, int, int]:
        stmt = select(
            func.count(_recipients.c.id),
            func.count(_recipients.c.sent_at),
            func.count(_recipients.c.confirmed_at),
        ).where(_recipients.c.group_message_id == group_message_id)
        result = await self._session.execute(stmt)
        total, sent, confirmed = result.one()
        return int(total), int(sent), int(confirmed)


class RecipientWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_not_exists(
        self,
        recipient: GroupMessageRecipient,
    ) -> tuple[GroupMessageRecipient, bool]:
        """Insert a delivery record idempotently. Returns (record, created_flag)."""
        stmt = (
            pg_insert(_recipients)
            .values(
                id=recipient.id,
                group_message_id=recipient.group_message_id,
                client_id=recipient.client_id,
                sent_at=recipient.sent_at,
                confirmed_at=recipient.confirmed_at,
                created_at=recipient.created_at,
            )
            .on_conflict_do_nothing(constraint="uq_group_message_recipient")
            .returning(*_recipients.c)
        )
        result = await self._session.execute(stmt)
        row = result.first()
        if row is not None:
            return mapper.recipient_to_entity(row), True

        # Conflict: the delivery record already exists
        existing = await RecipientReaderRepo(self._session).get_for_client(
            recipient.group_message_id, recipient.client_id,
        )
        assert existing is not None
        return existing, False

    async def mark_sent(self, recipient_id: UUID, ts: datetime) -> None:
        stmt = update(_recipients).where(_recipients.c.id == recipient_id).values(sent_at=ts)
        await self._session.execute(stmt)

    async def mark_confirmed(self, recipient_id: UUID, ts: datetime) -> bool:
        stmt = (
            update(_recipients)
            .where(
                _recipients.c.id == recipient_id,
                _recipients.c.confirmed_at.is_(None),
            )
            .values(confirmed_at=ts)
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)
