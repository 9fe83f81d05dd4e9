"""Direct coach/client threads: append, ordered listing and read state."""
from __future__ import annotations

import uuid

from coach_messaging.application.cursor import decode_cursor
from coach_messaging.application.dto.message import NewMessageDTO
from coach_messaging.application.dto.principal import Principal
from coach_messaging.application.exceptions import ValidationError
from coach_messaging.application.policies.permissions import assert_thread_access
from coach_messaging.application.ports.clock import Clock
from coach_messaging.application.uow import UnitOfWork
from coach_messaging.domain.entities.message import Message


def _assert_member(coach_id: uuid.UUID, client_id: uuid.UUID, actor_id: uuid.UUID) -> None:
    if actor_id not in (coach_id, client_id):
        raise ValidationError("Actor is not a member of this thread")


async def append_message(
    draft: NewMessageDTO,
    uow: UnitOfWork,
    clock: Clock,
) -> Message:
    """Append to a thread without committing.

    The thread position is allocated under the thread row lock, so the
    created_at/seq pair is strictly greater than every earlier message.
    """
    if not draft.body or not draft.body.strip():
        raise ValidationError("Message body must not be empty")
    _assert_member(draft.coach_id, draft.client_id, draft.sender_id)

    position = await uow.threads_w.next_position(
        draft.coach_id, draft.client_id, clock.now(),
    )
    message = Message(
        id=uuid.uuid4(),
        coach_id=draft.coach_id,
        client_id=draft.client_id,
        sender_id=draft.sender_id,
        body=draft.body,
        seq=position.seq,
        created_at=position.created_at,
        group_message_id=draft.group_message_id,
        recipient_id=draft.recipient_id,
        title=draft.title,
        requires_confirmation=draft.requires_confirmation,
        workout_id=draft.workout_id,
    )
    return await uow.messages_w.add(message)


async def send_message(
    coach_id: uuid.UUID,
    client_id: uuid.UUID,
    principal: Principal,
    body: str,
    uow: UnitOfWork,
    clock: Clock,
) -> Message:
    await assert_thread_access(principal, coach_id, client_id, uow.roster)

    msg = await append_message(
        NewMessageDTO(
            coach_id=coach_id,
            client_id=client_id,
            sender_id=principal.subject_id,
            body=body,
        ),
        uow,
        clock,
    )
    await uow.outbox.add(
        "message.sent",
        {
            "message_id": str(msg.id),
            "coach_id": str(coach_id),
            "client_id": str(client_id),
            "sender_id": str(msg.sender_id),
            "length": len(msg.body),
        },
    )
    await uow.commit()
    return msg


async def list_messages(
    coach_id: uuid.UUID,
    client_id: uuid.UUID,
    principal: Principal,
    limit: int | None,
    before: str | None,
    uow: UnitOfWork,
) -> list[Message]:
    await assert_thread_access(principal, coach_id, client_id, uow.roster)
    return await uow.messages.list_thread(
        coach_id,
        client_id,
        limit=limit,
        before=decode_cursor(before) if before else None,
    )


async def mark_thread_read(
    coach_id: uuid.UUID,
    client_id: uuid.UUID,
    reader_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock,
) -> int:
    _assert_member(coach_id, client_id, reader_id)
    return await uow.messages_w.mark_read(coach_id, client_id, reader_id, clock.now())


async def mark_read(
    coach_id: uuid.UUID,
    client_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock,
) -> int:
    await assert_thread_access(principal, coach_id, client_id, uow.roster)
    updated = await mark_thread_read(coach_id, client_id, principal.subject_id, uow, clock)
    if updated:
        await uow.outbox.add(
            "thread.read",
            {
                "coach_id": str(coach_id),
                "client_id": str(client_id),
                "reader_id": str(principal.subject_id),
                "marked": updated,
            },
        )
        await uow.commit()
    return updated


async def unread_count(
    coach_id: uuid.UUID,
    client_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> int:
    await assert_thread_access(principal, coach_id, client_id, uow.roster)
    _assert_member(coach_id, client_id, principal.subject_id)
    return await uow.messages.count_unread(coach_id, client_id, principal.subject_id)
