from __future__ import annotations

import uuid

import pytest
import pytest_asyncio

from coach_messaging.application.exceptions import ForbiddenError, NotFoundError
from coach_messaging.domain.value_objects.audience import AllClients
from coach_messaging.services import confirmation_service
from coach_messaging.services.fanout_dispatcher import fanout
from tests.conftest import client_principal, make_group_message


@pytest_asyncio.fixture
async def delivered(uow, clock, coach_id):
    client_id = uow.roster.add_client(coach_id)
    gm = make_group_message(coach_id, AllClients(), require_confirmation=True)
    await uow.group_messages_w.create(gm)
    await fanout(gm, uow, clock)
    recipient = await uow.recipients.get_for_client(gm.id, client_id)
    return gm, client_id, recipient


@pytest.mark.asyncio
async def test_confirm_sets_record_and_message(uow, clock, delivered):
    gm, client_id, recipient = delivered
    when = clock.advance(minutes=10)

    confirmed_at = await confirmation_service.confirm(recipient.id, client_id, uow, clock)

    assert confirmed_at == when
    assert uow.recipients.items[recipient.id].confirmed_at == when
    msg = await uow.messages.get_by_recipient(recipient.id)
    assert msg.confirmed_at == when
    assert uow.outbox.event_types() == ["broadcast.confirmed"]


@pytest.mark.asyncio
async def test_confirm_is_idempotent(uow, clock, delivered):
    gm, client_id, recipient = delivered
    first = await confirmation_service.confirm(recipient.id, client_id, uow, clock)
    clock.advance(hours=1)

    second = await confirmation_service.confirm_for_broadcast(gm.id, client_id, uow, clock)

    assert second == first
    assert uow.outbox.event_types().count("broadcast.confirmed") == 1


@pytest.mark.asyncio
async def test_confirm_rejects_other_clients(uow, clock, delivered):
    gm, _, recipient = delivered

    with pytest.raises(NotFoundError):
        await confirmation_service.confirm(recipient.id, uuid.uuid4(), uow, clock)
    with pytest.raises(NotFoundError):
        await confirmation_service.confirm(uuid.uuid4(), recipient.client_id, uow, clock)
    with pytest.raises(NotFoundError):
        await confirmation_service.confirm_for_broadcast(gm.id, uuid.uuid4(), uow, clock)


@pytest.mark.asyncio
async def test_confirm_requires_client_principal(uow, clock, coach, delivered):
    _, _, recipient = delivered

    with pytest.raises(ForbiddenError):
        await confirmation_service.confirm_as_client(recipient.id, coach, uow, clock)

    confirmed_at = await confirmation_service.confirm_as_client(
        recipient.id, client_principal(recipient.client_id), uow, clock,
    )
    assert confirmed_at == clock.now()
