"""
rally.errors — Typed Failures
==============================

Every failure a service can report is one of these.  Each carries the
HTTP status the API layer renders it with, so routes never translate
errors by hand.

"Already enrolled" is not an error here:
:func:`rally.services.enrollment_service.enroll` returns it as a result.
"""

from __future__ import annotations

from typing import Any


class RallyError(Exception):
    """Base class for all Rally domain errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFound(RallyError):
    """A root or by-id lookup matched no row."""

    status_code = 404

    def __init__(self, entity: str, key: Any) -> None:
        super().__init__(
            f"{entity} {key!r} not found",
            details={"entity": entity, "key": key},
        )
        self.entity = entity
        self.key = key


class ConstraintViolation(RallyError):
    """A write referenced a missing row or broke a uniqueness rule."""

    status_code = 409


class AuthenticationRequired(RallyError):
    """No caller identity could be resolved for the request."""

    status_code = 401

    def __init__(self, message: str = "No user logged in") -> None:
        super().__init__(message)


class InvalidPath(RallyError):
    """A traversal named an unknown edge or filtered on an unknown field."""

    status_code = 400
