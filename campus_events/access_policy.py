"""Role and ownership rules for event actions.

Decisions only: callers enforce them, normally through ``ensure_can_perform``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

from campus_events.errors import Forbidden, Unauthenticated
from campus_events.models.user import Role


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as resolved from a bearer token."""

    id: int
    role: str
    name: str = ""
    email: str = ""

    @classmethod
    def from_user(cls, user: Any) -> "Identity":
        return cls(
            id=user.id,
            role=str(getattr(user, "role", "") or "").lower(),
            name=getattr(user, "name", "") or "",
            email=getattr(user, "email", "") or "",
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin.value


class Action(str, enum.Enum):
    create = "create"
    update = "update"
    update_status = "update_status"
    delete = "delete"
    view_all = "view_all"


_CREATOR_ROLES = {Role.organizer.value, Role.admin.value}


def _role(identity: Optional[Identity]) -> Optional[str]:
    return identity.role if identity is not None else None


def _owns(identity: Identity, resource: Any) -> bool:
    owner = getattr(resource, "organizer_id", None)
    return owner is not None and owner == identity.id


def can_perform(identity: Optional[Identity], action: Action, resource: Any = None) -> bool:
    """Return True when ``identity`` may perform ``action`` on ``resource``.

    ``identity`` is None for anonymous callers.
    """
    if identity is None:
        return False

    role = _role(identity)
    if action is Action.create:
        return role in _CREATOR_ROLES
    if action in (Action.update, Action.delete):
        if resource is None:
            return False
        return role == Role.admin.value or _owns(identity, resource)
    if action in (Action.update_status, Action.view_all):
        return role == Role.admin.value
    return False


_DENIAL_MESSAGES = {
    Action.create: "Role '{role}' is not authorized to create events",
    Action.update: "Not authorized to update this event",
    Action.update_status: "Role '{role}' is not authorized to change event status",
    Action.delete: "Not authorized to delete this event",
    Action.view_all: "Only admins may list events in every status",
}


def ensure_can_perform(identity: Optional[Identity], action: Action, resource: Any = None) -> None:
    """Raise ``Unauthenticated`` or ``Forbidden`` when the action is denied."""
    if can_perform(identity, action, resource):
        return
    if identity is None:
        raise Unauthenticated()
    raise Forbidden(_DENIAL_MESSAGES[action].format(role=identity.role))


__all__ = ["Action", "Identity", "can_perform", "ensure_can_perform"]
