from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from coach_messaging.domain.value_objects.enums import ActorKind


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT.

    ``subject_id`` is the coach id for coaches and the client id for clients.
    """

    kind: ActorKind
    subject_id: UUID
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.kind == ActorKind.ADMIN or "admin" in self.roles

    @property
    def is_coach(self) -> bool:
        return self.kind == ActorKind.COACH

    @property
    def is_client(self) -> bool:
        return self.kind == ActorKind.CLIENT
