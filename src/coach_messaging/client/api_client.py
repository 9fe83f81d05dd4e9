"""Thin async HTTP client for the thread endpoints."""
from __future__ import annotations

from types import TracebackType
from typing import Any, Self
from uuid import UUID

import httpx

from coach_messaging.api.v1.schemas.message import MessageResponse


class MessagingAPIError(Exception):
    def __init__(self, status_code: int, detail: Any) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class MessagingClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def list_thread(
        self,
        coach_id: UUID,
        client_id: UUID,
        *,
        limit: int | None = None,
    ) -> list[MessageResponse]:
        params = {"limit": limit} if limit else None
        resp = await self._http.get(f"/api/v1/threads/{coach_id}/{client_id}/messages", params=params)
        data = self._json(resp)
        return [MessageResponse.model_validate(item) for item in data]

    async def send_message(self, coach_id: UUID, client_id: UUID, body: str) -> MessageResponse:
        resp = await self._http.post(
            f"/api/v1/threads/{coach_id}/{client_id}/messages",
            json={"body": body},
        )
        return MessageResponse.model_validate(self._json(resp))

    async def mark_read(self, coach_id: UUID, client_id: UUID) -> int:
        resp = await self._http.post(f"/api/v1/threads/{coach_id}/{client_id}/read")
        return int(self._json(resp)["updated"])

    async def unread(self, coach_id: UUID, client_id: UUID) -> int:
        resp = await self._http.get(f"/api/v1/threads/{coach_id}/{client_id}/unread")
        return int(self._json(resp)["unread"])

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if resp.is_error:
            try:
                detail = resp.json().get("detail")
            except ValueError:
                detail = resp.text
            raise MessagingAPIError(resp.status_code, detail)
        return resp.json()
