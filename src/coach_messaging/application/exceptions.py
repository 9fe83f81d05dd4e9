"""Errors raised by services and mapped to HTTP responses in ``app``."""
from __future__ import annotations


class AppError(Exception):
    status_code = 400

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    """Unknown thread pair, broadcast or delivery record.

    Also used when the caller may not know the resource exists.
    """

    status_code = 404


class ForbiddenError(AppError):
    status_code = 403


class ConflictError(AppError):
    """Broadcast status does not allow the requested transition."""

    status_code = 409


class ValidationError(AppError):
    """Empty body, actor outside the thread, unusable audience, bad cursor."""

    status_code = 422
