"""Broadcast audience: a closed variant of "every active client" or an explicit list."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from coach_messaging.domain.value_objects.enums import AudienceType


@dataclass(frozen=True, slots=True)
class AllClients:
    type: AudienceType = AudienceType.ALL


@dataclass(frozen=True, slots=True)
class SelectedClients:
    ids: tuple[UUID, ...]
    type: AudienceType = AudienceType.CLIENTS


Audience = AllClients | SelectedClients


def audience_to_dict(audience: Audience) -> dict[str, Any]:
    if isinstance(audience, SelectedClients):
        return {"type": AudienceType.CLIENTS.value, "ids": [str(i) for i in audience.ids]}
    return {"type": AudienceType.ALL.value}


def audience_from_dict(raw: dict[str, Any]) -> Audience:
    kind = raw.get("type")
    if kind == AudienceType.ALL:
        return AllClients()
    if kind == AudienceType.CLIENTS:
        ids = raw.get("ids") or []
        return SelectedClients(ids=tuple(UUID(str(i)) for i in ids))
    raise ValueError(f"Unknown audience type: {kind!r}")
