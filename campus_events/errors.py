"""Domain errors raised by the core and rendered by the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Iterable, List


class CampusEventsError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class Unauthenticated(CampusEventsError):
    status_code = 401
    message = "Not authorized to access this route"


class Forbidden(CampusEventsError):
    status_code = 403
    message = "Not authorized to perform this action"


class NotFound(CampusEventsError):
    status_code = 404
    message = "Event not found"


class StoreUnavailable(CampusEventsError):
    status_code = 500
    message = "Server error"


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class ValidationFailed(CampusEventsError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, violations: Iterable[FieldViolation], message: str | None = None) -> None:
        self.violations: List[FieldViolation] = list(violations)
        super().__init__(message)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = [v.to_dict() for v in self.violations]
        return body


__all__ = [
    "CampusEventsError",
    "FieldViolation",
    "Forbidden",
    "NotFound",
    "StoreUnavailable",
    "Unauthenticated",
    "ValidationFailed",
]
