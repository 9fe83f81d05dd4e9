"""Broadcast lifecycle: schedule, cancel, trigger (sweep or send-now) and status."""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta, timezone

from coach_messaging.application.dto.broadcast import (
    BroadcastStatusDTO,
    ScheduleBroadcastDTO,
    TriggerOutcome,
)
from coach_messaging.application.dto.principal import Principal
from coach_messaging.application.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from coach_messaging.application.policies.permissions import (
    assert_broadcast_owner,
    assert_coach,
)
from coach_messaging.application.ports.clock import Clock
from coach_messaging.application.uow import UnitOfWork
from coach_messaging.domain.entities.group_message import GroupMessage
from coach_messaging.domain.entities.recipient import GroupMessageRecipient
from coach_messaging.domain.value_objects.audience import SelectedClients, audience_to_dict
from coach_messaging.domain.value_objects.enums import BroadcastStatus
from coach_messaging.services.audience_resolver import resolve_audience
from coach_messaging.services.fanout_dispatcher import fanout

logger = logging.getLogger(__name__)

# A failed broadcast can be retried explicitly; the sweep only fires scheduled ones.
SWEEP_FROM = (BroadcastStatus.SCHEDULED,)
SEND_NOW_FROM = (BroadcastStatus.SCHEDULED, BroadcastStatus.FAILED)


async def schedule_broadcast(
    dto: ScheduleBroadcastDTO,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock,
) -> GroupMessage:
    assert_coach(principal)
    coach_id = principal.subject_id
    now = clock.now()

    if not dto.body or not dto.body.strip():
        raise ValidationError("Broadcast body must not be empty")

    if isinstance(dto.audience, SelectedClients):
        if not dto.audience.ids:
            raise ValidationError("Audience must list at least one client")
        resolved = await resolve_audience(coach_id, dto.audience, now, uow.roster)
        if not resolved:
            raise ValidationError("None of the selected clients is an active client of this coach")

    if dto.workout_id is not None and not await uow.workouts.exists(coach_id, dto.workout_id):
        raise NotFoundError("Workout not found")

    scheduled_at = dto.scheduled_at or now
    if scheduled_at.tzinfo is None:
        scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)

    title = dto.title.strip() if dto.title else None
    group_message = await uow.group_messages_w.create(
        GroupMessage(
            id=uuid.uuid4(),
            coach_id=coach_id,
            title=title or None,
            body=dto.body,
            scheduled_at=scheduled_at,
            audience=dto.audience,
            require_confirmation=dto.require_confirmation,
            workout_id=dto.workout_id,
            status=BroadcastStatus.SCHEDULED,
            created_at=now,
            updated_at=now,
        )
    )
    await uow.outbox.add(
        "broadcast.scheduled",
        {
            "group_message_id": str(group_message.id),
            "coach_id": str(coach_id),
            "scheduled_at": scheduled_at.isoformat(),
            "audience": audience_to_dict(dto.audience),
        },
    )
    await uow.commit()
    logger.info(
        "Broadcast %s scheduled by coach %s for %s",
        group_message.id, coach_id, scheduled_at.isoformat(),
    )
    return group_message


async def cancel_broadcast(
    group_message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock,
) -> GroupMessage:
    group_message = assert_broadcast_owner(
        principal, await uow.group_messages.get_by_id(group_message_id),
    )
    canceled = await uow.group_messages_w.transition(
        group_message.id, SWEEP_FROM, BroadcastStatus.CANCELED, clock.now(),
    )
    if canceled is None:
        current = await uow.group_messages.get_by_id(group_message.id)
        status = current.status if current else group_message.status
        raise ConflictError(f"Only scheduled broadcasts can be canceled (status: {status})")

    await uow.outbox.add(
        "broadcast.canceled",
        {"group_message_id": str(canceled.id), "coach_id": str(canceled.coach_id)},
    )
    await uow.commit()
    return canceled


async def trigger_broadcast(
    group_message_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock,
    *,
    force: bool = False,
) -> TriggerOutcome | None:
    """Single entry point for the sweep and for send-now.

    Claims the broadcast with one compare-and-swap to ``sending``. Whoever
    loses the swap does no work and gets None. Without ``force`` only a due,
    scheduled broadcast is claimed; with ``force`` the due time is ignored
    and a failed broadcast may be retried.
    """
    now = clock.now()
    if force:
        from_statuses = SEND_NOW_FROM
    else:
        current = await uow.group_messages.get_by_id(group_message_id)
        if current is None or current.scheduled_at > now:
            return None
        from_statuses = SWEEP_FROM

    claimed = await uow.group_messages_w.transition(
        group_message_id, from_statuses, BroadcastStatus.SENDING, now,
    )
    if claimed is None:
        await uow.rollback()
        logger.info("Broadcast %s not claimable, skipping", group_message_id)
        return None
    await uow.commit()

    try:
        result = await fanout(claimed, uow, clock)
    except BaseException as exc:
        # Cancellation included: a claimed broadcast must not stay in ``sending``.
        if isinstance(exc, Exception):
            logger.exception("Broadcast %s fan-out aborted", group_message_id)
        else:
            logger.warning("Broadcast %s fan-out interrupted (%s)", group_message_id, type(exc).__name__)
        await _abandon(group_message_id, "fan-out aborted", uow, clock)
        raise

    final_status = BroadcastStatus.SENT if result.ok else BroadcastStatus.FAILED
    finished = await uow.group_messages_w.transition(
        group_message_id, (BroadcastStatus.SENDING,), final_status, clock.now(),
    )
    if finished is None:
        logger.warning(
            "Broadcast %s left sending before fan-out finished; status not updated", group_message_id,
        )
    await uow.outbox.add(
        f"broadcast.{final_status}",
        {
            "group_message_id": str(group_message_id),
            "coach_id": str(claimed.coach_id),
            "delivered": result.delivered,
            "skipped": result.skipped,
            "failed": [str(cid) for cid in result.failed],
        },
    )
    await uow.commit()
    return TriggerOutcome(group_message=finished or claimed, result=result)


async def _abandon(
    group_message_id: uuid.UUID,
    reason: str,
    uow: UnitOfWork,
    clock: Clock,
) -> None:
    """Drop the in-flight recipient and move ``sending`` to ``failed``.

    Recipients committed before the interruption stay delivered; a later
    send-now re-attempts the rest.
    """
    await uow.rollback()
    failed = await uow.group_messages_w.transition(
        group_message_id, (BroadcastStatus.SENDING,), BroadcastStatus.FAILED, clock.now(),
    )
    if failed is not None:
        await uow.outbox.add(
            "broadcast.failed",
            {"group_message_id": str(group_message_id), "error": reason},
        )
    await uow.commit()


async def recover_stale_broadcasts(
    uow: UnitOfWork,
    clock: Clock,
    lease: timedelta,
) -> list[GroupMessage]:
    """Fail broadcasts stuck in ``sending`` longer than ``lease``.

    Covers a worker that died after claiming a broadcast. The recovered
    broadcasts can then be retried with send-now.
    """
    now = clock.now()
    expired = await uow.group_messages_w.expire_sending(now - lease, now)
    for group_message in expired:
        logger.warning(
            "Broadcast %s held sending past its %s lease, marked failed", group_message.id, lease,
        )
        await uow.outbox.add(
            "broadcast.failed",
            {"group_message_id": str(group_message.id), "error": "sending lease expired"},
        )
    await uow.commit()
    return expired


async def send_now(
    group_message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock,
) -> TriggerOutcome:
    group_message = assert_broadcast_owner(
        principal, await uow.group_messages.get_by_id(group_message_id),
    )
    outcome = await trigger_broadcast(group_message.id, uow, clock, force=True)
    if outcome is None:
        current = await uow.group_messages.get_by_id(group_message.id)
        status = current.status if current else group_message.status
        raise ConflictError(f"Broadcast cannot be sent now (status: {status})")
    return outcome


async def list_broadcasts(
    principal: Principal,
    status: BroadcastStatus | None,
    limit: int,
    uow: UnitOfWork,
) -> list[GroupMessage]:
    assert_coach(principal)
    return await uow.group_messages.list_for_coach(
        principal.subject_id, status=status.value if status else None, limit=limit,
    )


async def get_broadcast(
    group_message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> GroupMessage:
    return assert_broadcast_owner(
        principal, await uow.group_messages.get_by_id(group_message_id),
    )


async def broadcast_status(
    group_message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> BroadcastStatusDTO:
    group_message = await get_broadcast(group_message_id, principal, uow)
    recipients, sent, confirmed = await uow.recipients.counts(group_message.id)
    return BroadcastStatusDTO(
        id=group_message.id,
        status=BroadcastStatus(group_message.status),
        recipient_count=recipients,
        sent_count=sent,
        confirmed_count=confirmed,
    )


async def list_recipients(
    group_message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> list[GroupMessageRecipient]:
    group_message = await get_broadcast(group_message_id, principal, uow)
    return await uow.recipients.list_for_broadcast(group_message.id)
