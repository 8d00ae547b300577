"""
Registration schema definitions for EventEase API.
"""

from pydantic import BaseModel, ConfigDict

from eventease.models.event import EventStatus
from eventease.services.registration import Eligibility


class EligibilityResponse(BaseModel):
    """Join and leave eligibility of the caller for one event."""
    event_id: int
    status: EventStatus
    can_join: Eligibility
    can_leave: Eligibility

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "event_id": 7,
                "status": "upcoming",
                "can_join": {"allowed": False, "event_id": 7, "reason": "full", "message": "Event is full"},
                "can_leave": {"allowed": False, "event_id": 7, "reason": "not_registered",
                              "message": "Not registered for this event"}
            }
        }
    )
