from __future__ import annotations

from typing import Protocol

from coach_messaging.application.dto.principal import Principal


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Principal:
        """Return the caller behind a bearer token.

        Raises on an invalid, expired or unsigned token, or one whose subject
        is not a coach, client or admin id.
        """
        ...
