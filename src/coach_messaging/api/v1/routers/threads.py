from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from coach_messaging.api.deps import ClockDep, CurrentPrincipal, UoWDep
from coach_messaging.api.v1.schemas.message import (
    MarkReadResponse,
    MessageResponse,
    SendMessageRequest,
    UnreadResponse,
)
from coach_messaging.config import settings
from coach_messaging.services import thread_service

router = APIRouter(prefix="/api/v1/threads", tags=["threads"])


@router.get("/{coach_id}/{client_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    coach_id: UUID,
    client_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int | None = Query(None, ge=1, le=settings.THREAD_PAGE_MAX),
    before: str | None = Query(None),
) -> list[MessageResponse]:
    messages = await thread_service.list_messages(
        coach_id, client_id, principal, limit, before, uow,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{coach_id}/{client_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    coach_id: UUID,
    client_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> MessageResponse:
    msg = await thread_service.send_message(
        coach_id, client_id, principal, body.body, uow, clock,
    )
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.post("/{coach_id}/{client_id}/read", response_model=MarkReadResponse)
async def mark_read(
    coach_id: UUID,
    client_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    clock: ClockDep,
) -> MarkReadResponse:
    updated = await thread_service.mark_read(coach_id, client_id, principal, uow, clock)
    return MarkReadResponse(updated=updated)


@router.get("/{coach_id}/{client_id}/unread", response_model=UnreadResponse)
async def unread(
    coach_id: UUID,
    client_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> UnreadResponse:
    count = await thread_service.unread_count(coach_id, client_id, principal, uow)
    return UnreadResponse(unread=count)
