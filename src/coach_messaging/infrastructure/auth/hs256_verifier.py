from __future__ import annotations

from uuid import UUID

import jwt

from coach_messaging.application.dto.principal import Principal
from coach_messaging.domain.value_objects.enums import ActorKind


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret.

    Expected claims: ``sub`` (UUID of the coach or client), ``kind``
    (coach | client | admin, ``role`` accepted as an alias) and optional
    ``roles``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        kind_raw = payload.get("kind", payload.get("role"))
        try:
            kind = ActorKind(kind_raw)
        except ValueError as exc:
            raise jwt.InvalidTokenError(f"Unknown actor kind: {kind_raw!r}") from exc
        try:
            subject_id = UUID(str(payload["sub"]))
        except (KeyError, ValueError) as exc:
            raise jwt.InvalidTokenError("Token subject must be a UUID") from exc
        return Principal(
            kind=kind,
            subject_id=subject_id,
            roles=list(payload.get("roles", [])),
        )
