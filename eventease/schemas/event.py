"""
Event schema definitions for EventEase API.

Request models validate user input (time format, enums, non-negative price,
positive capacity). Response models are built from ORM objects and always
carry the freshly reconciled status.
"""

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from eventease.models.event import EventCategory, EventStatus, LocationType
from eventease.schemas.user import UserSummary

# Zero-padded 24-hour clock, e.g. "09:30"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class EventBase(BaseModel):
    """Base Event Schema - common to creation and responses."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN, description="Start time as HH:MM (24-hour)")
    location: str = Field(..., min_length=1, max_length=255)
    location_type: LocationType
    category: EventCategory
    max_attendees: Optional[int] = Field(default=None, gt=0, description="Capacity; null means unlimited")
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    is_private: bool = False
    registration_deadline: Optional[dt.date] = None
    image: Optional[str] = Field(default=None, max_length=512)
    additional_details: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "title": "PyData Meetup",
                "description": "Talks and networking for data folks.",
                "date": "2026-11-12",
                "time": "18:30",
                "location": "Community Hall, 12 Main St",
                "location_type": "physical",
                "category": "networking",
                "max_attendees": 40,
                "price": "0",
                "is_private": False,
                "registration_deadline": "2026-11-10"
            }
        }
    )


class EventCreate(EventBase):
    """
    Schema for creating an event.

    The organizer is always the authenticated caller and the status is
    derived, so neither can be supplied.
    """
    model_config = ConfigDict(extra="forbid")


class EventUpdate(BaseModel):
    """
    Schema for updating an event.

    All fields are optional; only fields present in the request body are
    applied. Status is not editable here: cancellation has its own endpoint
    and every other status is derived.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    location_type: Optional[LocationType] = None
    category: Optional[EventCategory] = None
    max_attendees: Optional[int] = Field(default=None, gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_private: Optional[bool] = None
    registration_deadline: Optional[dt.date] = None
    image: Optional[str] = Field(default=None, max_length=512)
    additional_details: Optional[Dict[str, str]] = None

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class EventResponse(EventBase):
    """Event as returned by the API."""
    id: int
    organizer_id: int
    organizer: Optional[UserSummary] = None
    status: EventStatus
    price: float
    attendee_count: int
    is_full: bool
    spots_left: Optional[int] = None
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EventListResponse(BaseModel):
    """
    Paginated list of events.

    Used for API responses that return multiple events with pagination metadata.
    """
    items: List[EventResponse]
    total: int
    page: int
    size: int
    pages: int


class MyEventsResponse(BaseModel):
    """Events the caller organizes and events the caller attends."""
    organized: List[EventResponse]
    attending: List[EventResponse]
