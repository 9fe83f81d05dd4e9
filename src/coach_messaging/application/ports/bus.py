from __future__ import annotations

from typing import Any, Protocol


class EventPublisher(Protocol):
    """Notification channel fed by the outbox worker.

    Delivery is at-least-once: ``event_id`` is the outbox record id, so
    consumers can drop redeliveries.
    """

    async def publish(
        self,
        channel: str,
        event_type: str,
        data: dict[str, Any],
        *,
        event_id: int,
    ) -> None: ...
