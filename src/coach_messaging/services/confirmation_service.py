from __future__ import annotations

import uuid
from datetime import datetime

from coach_messaging.application.dto.principal import Principal
from coach_messaging.application.exceptions import NotFoundError
from coach_messaging.application.policies.permissions import assert_client
from coach_messaging.application.ports.clock import Clock
from coach_messaging.application.uow import UnitOfWork
from coach_messaging.domain.entities.recipient import GroupMessageRecipient


async def confirm(
    recipient_id: uuid.UUID,
    client_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock,
) -> datetime:
    """Record the client's acknowledgement of a delivered broadcast.

    Idempotent: confirming twice returns the first confirmation time.
    """
    recipient = await uow.recipients.get_by_id(recipient_id)
    return await _confirm_record(recipient, client_id, uow, clock)


async def confirm_for_broadcast(
    group_message_id: uuid.UUID,
    client_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock,
) -> datetime:
    recipient = await uow.recipients.get_for_client(group_message_id, client_id)
    return await _confirm_record(recipient, client_id, uow, clock)


async def confirm_as_client(
    recipient_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock,
) -> datetime:
    assert_client(principal)
    return await confirm(recipient_id, principal.subject_id, uow, clock)


async def confirm_broadcast_as_client(
    group_message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock,
) -> datetime:
    assert_client(principal)
    return await confirm_for_broadcast(group_message_id, principal.subject_id, uow, clock)


async def _confirm_record(
    recipient: GroupMessageRecipient | None,
    client_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock,
) -> datetime:
    if recipient is None or recipient.client_id != client_id or recipient.sent_at is None:
        raise NotFoundError("Delivery record not found")
    if recipient.confirmed_at is not None:
        return recipient.confirmed_at

    now = clock.now()
    changed = await uow.recipients_w.mark_confirmed(recipient.id, now)
    if not changed:
        # Lost a race with a concurrent confirmation; report the stored time.
        await uow.rollback()
        current = await uow.recipients.get_by_id(recipient.id)
        assert current is not None and current.confirmed_at is not None
        return current.confirmed_at

    await uow.messages_w.mark_confirmed(recipient.id, now)
    await uow.outbox.add(
        "broadcast.confirmed",
        {
            "group_message_id": str(recipient.group_message_id),
            "recipient_id": str(recipient.id),
            "client_id": str(client_id),
        },
    )
    await uow.commit()
    return now
