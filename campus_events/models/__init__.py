from campus_events.models.user import Role, User
from campus_events.models.event import Event, EventCategory, EventStatus

__all__ = ["Event", "EventCategory", "EventStatus", "Role", "User"]
