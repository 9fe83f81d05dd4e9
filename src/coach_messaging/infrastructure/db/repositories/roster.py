from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coach_messaging.domain.entities.client import ClientRef
from coach_messaging.infrastructure.db.models.roster import ClientModel, WorkoutModel


def _to_ref(model: ClientModel) -> ClientRef:
    return ClientRef(id=model.id, coach_id=model.coach_id, is_active=model.is_active)


class ClientRosterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_client(self, client_id: UUID) -> ClientRef | None:
        result = await self._session.get(ClientModel, client_id)
        return _to_ref(result) if result else None

    async def list_active(self, coach_id: UUID) -> list[ClientRef]:
        stmt = (
            select(ClientModel)
            .where(ClientModel.coach_id == coach_id, ClientModel.is_active.is_(True))
            .order_by(ClientModel.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [_to_ref(m) for m in result.scalars().all()]


class WorkoutCatalogRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, coach_id: UUID, workout_id: UUID) -> bool:
        stmt = (
            select(WorkoutModel.id)
            .where(
                WorkoutModel.id == workout_id,
                WorkoutModel.coach_id == coach_id,
                WorkoutModel.deleted_at.is_(None),
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None
