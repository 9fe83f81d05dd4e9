from __future__ import annotations

import logging
import uuid
from datetime import datetime

from coach_messaging.application.repositories.roster import ClientRoster
from coach_messaging.domain.value_objects.audience import Audience, SelectedClients

logger = logging.getLogger(__name__)


async def resolve_audience(
    coach_id: uuid.UUID,
    audience: Audience,
    at: datetime,
    roster: ClientRoster,
) -> list[uuid.UUID]:
    """Turn an audience into the coach's currently active client ids.

    Read-only; membership is evaluated against the roster as it is at ``at``,
    not as it was when the broadcast was authored. Explicit ids that are no
    longer active clients of this coach are dropped.
    """
    active = await roster.list_active(coach_id)
    active_ids = [c.id for c in active if c.is_active and c.coach_id == coach_id]

    if not isinstance(audience, SelectedClients):
        return list(dict.fromkeys(active_ids))

    allowed = set(active_ids)
    resolved = [cid for cid in dict.fromkeys(audience.ids) if cid in allowed]
    dropped = len(set(audience.ids)) - len(resolved)
    if dropped:
        logger.info(
            "Audience for coach %s at %s: dropped %d ids no longer in the active roster",
            coach_id, at.isoformat(), dropped,
        )
    return resolved
