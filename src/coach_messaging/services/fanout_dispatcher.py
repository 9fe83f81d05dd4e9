"""Expand one broadcast into per-recipient delivery records and thread messages."""
from __future__ import annotations

import logging
import uuid

from coach_messaging.application.dto.broadcast import FanoutResult
from coach_messaging.application.dto.message import NewMessageDTO
from coach_messaging.application.ports.clock import Clock
from coach_messaging.application.uow import UnitOfWork
from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.entities.recipient import GroupMessageRecipient
from coach_messaging.services.audience_resolver import resolve_audience
from coach_messaging.services.thread_service import append_message

logger = logging.getLogger(__name__)


async def fanout(
    group_message: GroupMessage,
    uow: UnitOfWork,
    clock: Clock,
) -> FanoutResult:
    """Deliver ``group_message`` to its audience as resolved right now.

    Safe to call repeatedly: a recipient that already has a delivery record
    is skipped. Every recipient is committed in its own short transaction, so
    a thread row is locked only while its one message is appended and a
    failure rolls back only that recipient (delivery record included); the
    client id is then reported in ``FanoutResult.failed``.

    Recipients are processed in id order so concurrent fan-outs over the
    same clients take thread locks in the same order.
    """
    recipients = await resolve_audience(
        group_message.coach_id, group_message.audience, clock.now(), uow.roster,
    )

    delivered = 0
    skipped = 0
    failed: list[uuid.UUID] = []

    for client_id in sorted(recipients):
        try:
            created = await _deliver_one(group_message, client_id, uow, clock)
            await uow.commit()
        except Exception:
            logger.exception(
                "Broadcast %s: delivery to client %s failed", group_message.id, client_id,
            )
            await uow.rollback()
            failed.append(client_id)
            continue

        if created:
            delivered += 1
        else:
            skipped += 1

    logger.info(
        "Broadcast %s fan-out: audience=%d delivered=%d skipped=%d failed=%d",
        group_message.id, len(recipients), delivered, skipped, len(failed),
    )
    return FanoutResult(delivered=delivered, skipped=skipped, failed=failed)


async def _deliver_one(
    group_message: GroupMessage,
    client_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock,
) -> bool:
    now = clock.now()
    recipient, created = await uow.recipients_w.create_if_not_exists(
        GroupMessageRecipient(
            id=uuid.uuid4(),
            group_message_id=group_message.id,
            client_id=client_id,
            sent_at=None,
            confirmed_at=None,
            created_at=now,
        )
    )
    if not created:
        return False

    message = await append_message(
        NewMessageDTO(
            coach_id=group_message.coach_id,
            client_id=client_id,
            sender_id=group_message.coach_id,
            body=group_message.body,
            group_message_id=group_message.id,
            recipient_id=recipient.id,
            title=group_message.title,
            requires_confirmation=group_message.require_confirmation,
            workout_id=group_message.workout_id,
        ),
        uow,
        clock,
    )
    await uow.recipients_w.mark_sent(recipient.id, message.created_at)
    return True
