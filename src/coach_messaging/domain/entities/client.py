from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ClientRef:
    """Roster entry owned by the client-management subsystem."""

    id: UUID
    coach_id: UUID
    is_active: bool
