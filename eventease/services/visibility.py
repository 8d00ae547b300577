"""Visibility rules and composable listing filters for events."""

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, and_, or_

from eventease.exceptions import ValidationError
from eventease.models.event import Event, EventCategory
from eventease.models.user import User


def is_visible_to(event, viewer_id: Optional[int]) -> bool:
    """
    Check whether a viewer may see an event.

    Public events are visible to everyone. Private events are visible only to
    their organizer and to users on the roster.

    Args:
        event: The event to check
        viewer_id: Id of the requesting user, or None for anonymous callers

    Returns:
        True if the event may be shown to the viewer
    """
    if not event.is_private:
        return True
    if viewer_id is None:
        return False
    if event.organizer_id == viewer_id:
        return True
    return any(user.id == viewer_id for user in event.attendees)


def visibility_clause(viewer_id: Optional[int]):
    """SQL form of ``is_visible_to``."""
    if viewer_id is None:
        return Event.is_private.is_(False)
    return or_(
        Event.is_private.is_(False),
        Event.organizer_id == viewer_id,
        Event.attendees.any(User.id == viewer_id),
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def month_bounds(year: int, month: int) -> tuple[dt.date, dt.date]:
    """First day of the month and first day of the following month."""
    start = dt.date(year, month, 1)
    if month == 12:
        return start, dt.date(year + 1, 1, 1)
    return start, dt.date(year, month + 1, 1)


@dataclass
class EventQuery:
    """Listing filters, applied on top of the visibility rule.

    Every field is optional and independent; unset fields add no predicate.
    """
    viewer_id: Optional[int] = None
    category: Optional[str] = None
    search: Optional[str] = None
    organizer_id: Optional[int] = None
    day: Optional[dt.date] = None
    year: Optional[int] = None
    month: Optional[int] = None
    page: int = 1
    size: int = 20

    def clauses(self) -> list:
        clauses = [visibility_clause(self.viewer_id)]

        if self.category and self.category != "all":
            try:
                category = EventCategory(self.category)
            except ValueError:
                raise ValidationError("category", f"Unknown category: {self.category!r}")
            clauses.append(Event.category == category)

        if self.search:
            pattern = f"%{_escape_like(self.search.strip())}%"
            clauses.append(or_(
                Event.title.ilike(pattern, escape="\\"),
                Event.description.ilike(pattern, escape="\\"),
            ))

        if self.organizer_id is not None:
            clauses.append(Event.organizer_id == self.organizer_id)

        if self.day is not None:
            clauses.append(Event.date == self.day)

        if self.year is not None and self.month is not None:
            start, end = month_bounds(self.year, self.month)
            clauses.append(Event.date >= start)
            clauses.append(Event.date < end)

        return clauses

    def apply(self, query: Select) -> Select:
        """Add filters and the calendar ordering (date, then time)."""
        return query.where(and_(*self.clauses())).order_by(Event.date, Event.time, Event.id)

    def paginate(self, query: Select) -> Select:
        return query.offset((self.page - 1) * self.size).limit(self.size)
