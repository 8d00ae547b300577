from .event import Event, EventStatus, EventCategory, LocationType, event_attendees
from .user import User, UserRole

__all__ = [
    'Event', 'EventStatus', 'EventCategory', 'LocationType', 'event_attendees',
    'User', 'UserRole',
]
