from __future__ import annotations

from typing import Protocol
from uuid import UUID

from coach_messaging.domain.entities.client import ClientRef


class ClientRoster(Protocol):
    """Read-only view of the client-management subsystem."""

    async def get_client(self, client_id: UUID) -> ClientRef | None: ...

    async def list_active(self, coach_id: UUID) -> list[ClientRef]: ...


class WorkoutCatalog(Protocol):
    async def exists(self, coach_id: UUID, workout_id: UUID) -> bool: ...
