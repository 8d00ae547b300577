"""
User schema definitions for EventEase API.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from eventease.models.user import UserRole


class UserSummary(BaseModel):
    """Public view of a user, as embedded in event responses."""
    id: int
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class UserBase(BaseModel):
    """Fields shared by user creation and responses."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: UserRole = UserRole.PARTICIPANT

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "first_name": "Ada",
                "last_name": "Lovelace",
                "email": "ada@example.com",
                "role": "organizer"
            }
        }
    )


class UserCreate(UserBase):
    """Schema for creating a user profile."""
    pass


class UserResponse(UserBase):
    """User profile as returned by the API."""
    id: int
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class AttendeeResponse(UserSummary):
    """Roster entry, visible to the event organizer only."""
    email: EmailStr
