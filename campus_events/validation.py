"""Field-level validation for event payloads.

The rules are declared on the pydantic models in ``campus_events.schemas``.
This module runs them and reports every failure as a ``FieldViolation`` so a
caller gets the full list in one response, before anything is written.
"""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from campus_events.errors import FieldViolation, ValidationFailed
from campus_events.models.event import EventCategory, EventStatus
from campus_events.schemas import EventCreate, EventStatusUpdate, EventUpdate

CATEGORY_VALUES = frozenset(c.value for c in EventCategory)
STATUS_VALUES = frozenset(s.value for s in EventStatus)

# Attribute name -> name used in JSON bodies.
API_FIELD_NAMES = {name: info.alias or name for name, info in EventCreate.model_fields.items()}


def parse_date(value: Any) -> Optional[date]:
    """Accept a ``date``, a ``datetime`` or an ISO-8601 string; ``None`` otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _field_name(loc: Sequence[Any]) -> str:
    if not loc:
        return "body"
    head = str(loc[0])
    parts = [API_FIELD_NAMES.get(head, head)] + [str(part) for part in loc[1:]]
    return ".".join(parts)


def violations_from_error(exc: ValidationError) -> List[FieldViolation]:
    return [FieldViolation(_field_name(err["loc"]), err["msg"]) for err in exc.errors()]


URL_FIELDS = frozenset({"registration_link", "image_url"})


def _plain(name: str, value: Any) -> Any:
    # Columns store enum values and URLs as plain strings.
    if isinstance(value, enum.Enum):
        return value.value
    if name in URL_FIELDS and value is not None:
        return str(value)
    return value


def _run(model: type[BaseModel], data: Any) -> Tuple[Optional[BaseModel], List[FieldViolation]]:
    try:
        return model.model_validate(data), []
    except ValidationError as exc:
        return None, violations_from_error(exc)


def validate_event_fields(
    data: Mapping[str, Any], *, partial: bool = False
) -> Tuple[Dict[str, Any], List[FieldViolation]]:
    """Check an event payload keyed by attribute or JSON name.

    With ``partial=False`` (creation) every required field must be present and
    ``category``/``featured`` take their defaults. With ``partial=True`` (edits)
    only the supplied fields are checked and returned. Unknown keys are dropped.
    """
    model, violations = _run(EventUpdate if partial else EventCreate, data)
    if model is None:
        return {}, violations
    fields = model.model_dump(exclude_unset=partial)
    return {name: _plain(name, value) for name, value in fields.items()}, []


def clean_event_fields(data: Mapping[str, Any], *, partial: bool = False) -> Dict[str, Any]:
    """Like ``validate_event_fields`` but raise ``ValidationFailed`` on any violation."""
    cleaned, violations = validate_event_fields(data, partial=partial)
    if violations:
        raise ValidationFailed(violations)
    return cleaned


def clean_status(value: Any) -> str:
    model, violations = _run(EventStatusUpdate, {"status": value})
    if violations:
        raise ValidationFailed(violations)
    return model.status.value
