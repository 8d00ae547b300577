"""Registration eligibility guard and the join/leave mutation primitives.

The guard functions are predicates: they never mutate. ``apply_join`` and
``apply_leave`` change the in-memory entities only and must be called after
the matching guard allowed the transition, inside the caller's transaction.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from eventease.exceptions import AuthorizationError, EligibilityDenied
from eventease.models.event import EventStatus
from eventease.services.lifecycle import current_time, derive_status


class DenialReason(str, Enum):
    ALREADY_REGISTERED = "already_registered"
    FULL = "full"
    NOT_UPCOMING = "not_upcoming"
    PAST_DEADLINE = "past_deadline"
    NOT_REGISTERED = "not_registered"


REASON_MESSAGES = {
    DenialReason.ALREADY_REGISTERED: "Already registered for this event",
    DenialReason.FULL: "Event is full",
    DenialReason.NOT_UPCOMING: "Event is not upcoming",
    DenialReason.PAST_DEADLINE: "The registration deadline has passed",
    DenialReason.NOT_REGISTERED: "Not registered for this event",
}


class Eligibility(BaseModel):
    """Outcome of a join or leave check."""
    allowed: bool
    event_id: Optional[int] = None
    reason: Optional[DenialReason] = None
    message: Optional[str] = None

    @classmethod
    def allow(cls, event) -> "Eligibility":
        return cls(allowed=True, event_id=event.id)

    @classmethod
    def deny(cls, event, reason: DenialReason) -> "Eligibility":
        return cls(
            allowed=False,
            event_id=event.id,
            reason=reason,
            message=REASON_MESSAGES[reason],
        )


def _is_attendee(event, user_id) -> bool:
    return any(user.id == user_id for user in event.attendees)


def _attendee_count(event) -> int:
    return len(event.attendees)


def can_join(event, user_id, now: Optional[dt.datetime] = None) -> Eligibility:
    """
    Decide whether ``user_id`` may join ``event`` at ``now``.

    Checks run in a fixed order and the first failing one is reported:
    already registered, full, not upcoming, past the registration deadline.
    """
    if now is None:
        now = current_time()

    if _is_attendee(event, user_id):
        return Eligibility.deny(event, DenialReason.ALREADY_REGISTERED)

    if event.max_attendees and _attendee_count(event) >= event.max_attendees:
        return Eligibility.deny(event, DenialReason.FULL)

    if derive_status(event, now) != EventStatus.UPCOMING:
        return Eligibility.deny(event, DenialReason.NOT_UPCOMING)

    # The deadline day itself is still open for registration
    if event.registration_deadline and now.date() > event.registration_deadline:
        return Eligibility.deny(event, DenialReason.PAST_DEADLINE)

    return Eligibility.allow(event)


def can_leave(event, user_id, now: Optional[dt.datetime] = None) -> Eligibility:
    """Decide whether ``user_id`` may leave ``event`` at ``now``."""
    if now is None:
        now = current_time()

    if not _is_attendee(event, user_id):
        return Eligibility.deny(event, DenialReason.NOT_REGISTERED)

    # Attendance is frozen once the event is no longer upcoming
    if derive_status(event, now) != EventStatus.UPCOMING:
        return Eligibility.deny(event, DenialReason.NOT_UPCOMING)

    return Eligibility.allow(event)


def ensure_can_join(event, user_id, now: Optional[dt.datetime] = None) -> Eligibility:
    eligibility = can_join(event, user_id, now)
    if not eligibility.allowed:
        raise EligibilityDenied(eligibility)
    return eligibility


def ensure_can_leave(event, user_id, now: Optional[dt.datetime] = None) -> Eligibility:
    eligibility = can_leave(event, user_id, now)
    if not eligibility.allowed:
        raise EligibilityDenied(eligibility)
    return eligibility


def apply_join(event, user) -> None:
    """Append ``user`` to the roster, keeping join order and uniqueness."""
    if _is_attendee(event, user.id):
        return
    event.attendees.append(user)
    # Column change forces an UPDATE of the event row and its version check
    event.attendee_count = _attendee_count(event)


def apply_leave(event, user) -> None:
    """Remove ``user`` from the roster."""
    for attendee in list(event.attendees):
        if attendee.id == user.id:
            event.attendees.remove(attendee)
    event.attendee_count = _attendee_count(event)


def ensure_organizer(event, user_id) -> None:
    """Only the organizer may edit, cancel, delete or view the roster."""
    if event.organizer_id != user_id:
        raise AuthorizationError("Only the organizer can manage this event")
