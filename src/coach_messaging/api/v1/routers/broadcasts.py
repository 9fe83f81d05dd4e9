from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from coach_messaging.api.deps import ClockDep, CurrentPrincipal, UoWDep
from coach_messaging.api.v1.schemas.broadcast import (
    BroadcastStatusResponse,
    ConfirmResponse,
    GroupMessageResponse,
    RecipientResponse,
    ScheduleBroadcastRequest,
    SendNowResponse,
)
from coach_messaging.application.dto.broadcast import ScheduleBroadcastDTO
from coach_messaging.domain.value_objects.enums import BroadcastStatus
from coach_messaging.services import broadcast_service, confirmation_service

router = APIRouter(prefix="/api/v1/broadcasts", tags=["broadcasts"])


@router.post("", response_model=GroupMessageResponse, status_code=201)
async def schedule_broadcast(
    body: ScheduleBroadcastRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> GroupMessageResponse:
    dto = ScheduleBroadcastDTO(
        body=body.body,
        audience=body.audience.to_domain(),
        title=body.title,
        scheduled_at=body.scheduled_at,
        require_confirmation=body.require_confirmation,
        workout_id=body.workout_id,
    )
    gm = await broadcast_service.schedule_broadcast(dto, principal, uow, clock)
    return GroupMessageResponse.from_entity(gm)


@router.get("", response_model=list[GroupMessageResponse])
async def list_broadcasts(
    principal: CurrentPrincipal,
    uow: UoWDep,
    status: BroadcastStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> list[GroupMessageResponse]:
    items = await broadcast_service.list_broadcasts(principal, status, limit, uow)
    return [GroupMessageResponse.from_entity(gm) for gm in items]


@router.get("/{group_message_id}", response_model=BroadcastStatusResponse)
async def broadcast_status(
    group_message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> BroadcastStatusResponse:
    dto = await broadcast_service.broadcast_status(group_message_id, principal, uow)
    return BroadcastStatusResponse.from_dto(dto)


@router.get("/{group_message_id}/recipients", response_model=list[RecipientResponse])
async def list_recipients(
    group_message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[RecipientResponse]:
    rows = await broadcast_service.list_recipients(group_message_id, principal, uow)
    return [RecipientResponse.model_validate(r, from_attributes=True) for r in rows]


@router.post("/{group_message_id}/send-now", response_model=SendNowResponse)
async def send_now(
    group_message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> SendNowResponse:
    outcome = await broadcast_service.send_now(group_message_id, principal, uow, clock)
    return SendNowResponse.from_outcome(outcome)


@router.post("/{group_message_id}/cancel", response_model=GroupMessageResponse)
async def cancel_broadcast(
    group_message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> GroupMessageResponse:
    gm = await broadcast_service.cancel_broadcast(group_message_id, principal, uow, clock)
    return GroupMessageResponse.from_entity(gm)


@router.post("/{group_message_id}/confirm", response_model=ConfirmResponse)
async def confirm_broadcast(
    group_message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> ConfirmResponse:
    confirmed_at = await confirmation_service.confirm_broadcast_as_client(
        group_message_id, principal, uow, clock,
    )
    return ConfirmResponse(confirmed_at=confirmed_at)


@router.post("/recipients/{recipient_id}/confirm", response_model=ConfirmResponse)
async def confirm_delivery(
    recipient_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> ConfirmResponse:
    confirmed_at = await confirmation_service.confirm_as_client(
        recipient_id, principal, uow, clock,
    )
    return ConfirmResponse(confirmed_at=confirmed_at)
