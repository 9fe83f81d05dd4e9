from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class GroupMessageRecipient:
    id: UUID
    group_message_id: UUID
    client_id: UUID
    sent_at: datetime | None
    confirmed_at: datetime | None
    created_at: datetime
