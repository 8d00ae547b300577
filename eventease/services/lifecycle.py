"""Event lifecycle: derive an event's display status from the wall clock.

Nothing in this module touches the database. ``reconcile_status`` mutates the
in-memory entity only; persisting the change is the caller's job.
"""

import datetime as dt
import re
from typing import Optional
from zoneinfo import ZoneInfo

from eventease.config import get_settings
from eventease.exceptions import ValidationError
from eventease.models.event import EventStatus

# An event starting later today is "ongoing" once it is this close to its start.
ONGOING_WINDOW = dt.timedelta(hours=2)

TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def current_time() -> dt.datetime:
    """Return the current instant in the configured timezone."""
    return dt.datetime.now(ZoneInfo(get_settings().TIMEZONE))


def parse_time(value: str) -> dt.time:
    """
    Parse a zero-padded 24-hour ``HH:MM`` string.

    Args:
        value: The stored time string

    Returns:
        The parsed time of day

    Raises:
        ValidationError: If the string is not a valid ``HH:MM`` time
    """
    if not isinstance(value, str):
        raise ValidationError("time", f"Expected an HH:MM string, got {value!r}")

    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValidationError("time", f"Expected HH:MM, got {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValidationError("time", f"Time out of range: {value!r}")
    return dt.time(hour, minute)


def event_day(event) -> dt.date:
    """The calendar day of an event; any time-of-day component is ignored."""
    value = event.date
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def event_instant(event, now: dt.datetime) -> dt.datetime:
    """Combine the event's date and time in the timezone of ``now``."""
    return dt.datetime.combine(event_day(event), parse_time(event.time), tzinfo=now.tzinfo)


def derive_status(event, now: Optional[dt.datetime] = None) -> EventStatus:
    """
    Compute the status an event should display at ``now``.

    Rules, first match wins:

    1. A cancelled event stays cancelled.
    2. An event whose start has passed is completed.
    3. An event later today is ongoing within ``ONGOING_WINDOW`` of its
       start, upcoming before that.
    4. Anything on a later day is upcoming.

    Args:
        event: Object with ``date``, ``time`` and ``status`` attributes
        now: Reference instant; defaults to ``current_time()``

    Returns:
        The derived status
    """
    if event.status == EventStatus.CANCELLED:
        return EventStatus.CANCELLED

    if now is None:
        now = current_time()

    instant = event_instant(event, now)
    # Arithmetic between datetimes sharing a tzinfo ignores UTC offsets,
    # so elapsed time is measured in UTC; "today" stays local.
    until_start = instant.astimezone(dt.timezone.utc) - now.astimezone(dt.timezone.utc)
    if until_start < dt.timedelta(0):
        return EventStatus.COMPLETED

    if instant.date() == now.date():
        if until_start <= ONGOING_WINDOW:
            return EventStatus.ONGOING
        return EventStatus.UPCOMING

    return EventStatus.UPCOMING


def reconcile_status(event, now: Optional[dt.datetime] = None) -> bool:
    """
    Apply the derived status to ``event`` if it differs from the stored one.

    Returns:
        True if the status changed and the entity needs to be persisted
    """
    derived = derive_status(event, now)
    if event.status == derived:
        return False
    event.status = derived
    return True
