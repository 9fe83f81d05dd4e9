from __future__ import annotations

from uuid import UUID

from coach_messaging.application.dto.principal import Principal
from coach_messaging.application.exceptions import ForbiddenError, NotFoundError
from coach_messaging.application.repositories.roster import ClientRoster
from coach_messaging.domain.entities.client import ClientRef
from coach_messaging.domain.entities.group_message import GroupMessage


async def assert_thread_access(
    principal: Principal,
    coach_id: UUID,
    client_id: UUID,
    roster: ClientRoster,
) -> ClientRef:
    """Raise if the (coach, client) pair is unknown or the principal is not part of it."""
    if principal.is_coach and principal.subject_id != coach_id:
        raise ForbiddenError("Not the coach of this thread")
    if principal.is_client and principal.subject_id != client_id:
        raise ForbiddenError("Not the client of this thread")
    if not (principal.is_coach or principal.is_client or principal.is_admin):
        raise ForbiddenError("Thread access denied")

    client = await roster.get_client(client_id)
    if client is None or client.coach_id != coach_id:
        raise NotFoundError("Thread not found")
    return client


def assert_coach(principal: Principal) -> None:
    if not principal.is_coach:
        raise ForbiddenError("Coach access required")


def assert_client(principal: Principal) -> None:
    if not principal.is_client:
        raise ForbiddenError("Client access required")


def assert_broadcast_owner(
    principal: Principal,
    group_message: GroupMessage | None,
) -> GroupMessage:
    if group_message is None:
        raise NotFoundError("Broadcast not found")
    # Admins see every broadcast
    if principal.is_admin:
        return group_message
    if not principal.is_coach or group_message.coach_id != principal.subject_id:
        raise NotFoundError("Broadcast not found")
    return group_message
