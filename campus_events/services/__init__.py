from campus_events.services.event_repository import EventFilter, EventRepository
from campus_events.services import event_queries, event_workflow

__all__ = ["EventFilter", "EventRepository", "event_queries", "event_workflow"]
