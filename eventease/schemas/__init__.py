"""
Schema definitions for EventEase API.

Request and response models for every endpoint live in this package.
"""

from .event import (
    EventBase, EventCreate, EventUpdate, EventResponse, EventListResponse, MyEventsResponse,
    TIME_PATTERN,
)
from .user import UserBase, UserCreate, UserResponse, UserSummary, AttendeeResponse
from .registration import EligibilityResponse

__all__ = [
    # Event schemas
    'EventBase', 'EventCreate', 'EventUpdate', 'EventResponse', 'EventListResponse',
    'MyEventsResponse', 'TIME_PATTERN',

    # User schemas
    'UserBase', 'UserCreate', 'UserResponse', 'UserSummary', 'AttendeeResponse',

    # Registration schemas
    'EligibilityResponse',
]
