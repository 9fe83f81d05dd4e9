"""Wire envelope for events published on the Redis channel.

    {"id": <outbox id>, "event": "broadcast.sent", "source": "coach-messaging", "data": {...}}
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

SOURCE = "coach-messaging"


def _default(o: object) -> Any:
    if isinstance(o, UUID):
        return str(o)
    if isinstance(o, datetime):
        return o.isoformat()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def serialize_event(event_id: int, event_type: str, data: dict[str, Any]) -> str:
    envelope = {"id": event_id, "event": event_type, "source": SOURCE, "data": data}
    return json.dumps(envelope, default=_default, separators=(",", ":"))


def deserialize_event(raw: str | bytes) -> tuple[int, str, dict[str, Any]]:
    envelope = json.loads(raw)
    return envelope["id"], envelope["event"], envelope["data"]
