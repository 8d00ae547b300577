import datetime as dt
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from eventease.exceptions import ConflictError, NotFoundError, ValidationError
from eventease.logging_config import get_logger
from eventease.models.event import Event, EventStatus
from eventease.models.user import User
from eventease.schemas.event import EventCreate, EventUpdate
from eventease.services.lifecycle import reconcile_status
from eventease.services.registration import (
    Eligibility,
    apply_join,
    apply_leave,
    can_join,
    can_leave,
    ensure_can_join,
    ensure_can_leave,
    ensure_organizer,
)
from eventease.services.visibility import EventQuery, is_visible_to

logger = get_logger("crud.event")

# Fields an update may explicitly clear
NULLABLE_FIELDS = {"max_attendees", "registration_deadline", "image"}


def _event_select():
    return (
        select(Event)
        .options(selectinload(Event.organizer), selectinload(Event.attendees))
        .execution_options(populate_existing=True)
    )


async def _load_event(db: AsyncSession, event_id: int) -> Optional[Event]:
    result = await db.execute(_event_select().where(Event.id == event_id))
    return result.scalars().first()


async def _require_event(db: AsyncSession, event_id: int) -> Event:
    event = await _load_event(db, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return event


async def _persist_reconciled(
    db: AsyncSession, events: Sequence[Event], now: Optional[dt.datetime] = None
) -> bool:
    """
    Re-derive the status of each event and write only the ones that changed.

    Args:
        db: Database session
        events: Loaded events
        now: Reference instant for status derivation

    Returns:
        True if the session was committed or rolled back and the events
        must be reloaded before use
    """
    changed = []
    for event in events:
        previous = event.status
        if reconcile_status(event, now):
            changed.append((event.id, previous, event.status))

    if not changed:
        return False

    try:
        await db.commit()
    except StaleDataError:
        # Another request updated the same rows first; its state wins
        await db.rollback()
        logger.info("Status reconcile lost a race, reloading events")
        return True

    for event_id, previous, current in changed:
        logger.info(f"Event {event_id} status changed: {previous.value} -> {current.value}")
    return True


async def _commit_or_conflict(db: AsyncSession, event_id: int) -> None:
    try:
        await db.commit()
    except (StaleDataError, IntegrityError) as e:
        await db.rollback()
        logger.warning(f"Concurrent modification of event {event_id}: {e}")
        raise ConflictError(f"Event {event_id} was modified concurrently, please retry") from e


async def get_event(
    db: AsyncSession, event_id: int, now: Optional[dt.datetime] = None
) -> Optional[Event]:
    """
    Get a specific event by ID with a freshly reconciled status.

    Args:
        db: Database session
        event_id: ID of the event to retrieve
        now: Reference instant for status derivation

    Returns:
        Event or None if not found
    """
    event = await _load_event(db, event_id)
    if event is None:
        return None
    if await _persist_reconciled(db, [event], now):
        event = await _load_event(db, event_id)
    return event


async def _fetch_events(
    db: AsyncSession, query: EventQuery, paginate: bool, now: Optional[dt.datetime]
) -> List[Event]:
    statement = query.apply(_event_select())
    if paginate:
        statement = query.paginate(statement)

    result = await db.execute(statement)
    events = list(result.scalars().all())
    if await _persist_reconciled(db, events, now):
        result = await db.execute(statement)
        events = list(result.scalars().all())
    return events


async def get_events(
    db: AsyncSession, query: EventQuery, now: Optional[dt.datetime] = None
) -> Tuple[List[Event], int]:
    """
    Get a page of events visible to the query's viewer.

    Args:
        db: Database session
        query: Visibility, filters and pagination
        now: Reference instant for status derivation

    Returns:
        Tuple of (events on the requested page, total matching events)
    """
    count_query = select(func.count()).select_from(Event).where(and_(*query.clauses()))
    total = (await db.execute(count_query)).scalar_one()

    events = await _fetch_events(db, query, paginate=True, now=now)
    return events, total


async def get_calendar_events(
    db: AsyncSession,
    year: int,
    month: int,
    viewer_id: Optional[int] = None,
    now: Optional[dt.datetime] = None,
) -> List[Event]:
    """Visible events in one calendar month, ordered by date then time."""
    query = EventQuery(viewer_id=viewer_id, year=year, month=month)
    return await _fetch_events(db, query, paginate=False, now=now)


async def get_organizer_events(
    db: AsyncSession,
    organizer_id: int,
    viewer_id: Optional[int] = None,
    now: Optional[dt.datetime] = None,
) -> List[Event]:
    """
    Visible events organized by ``organizer_id``.

    One organizer's events are few and arrive with their rosters loaded,
    so visibility is decided per event instead of in SQL.
    """
    statement = (
        _event_select()
        .where(Event.organizer_id == organizer_id)
        .order_by(Event.date, Event.time, Event.id)
    )
    events = list((await db.execute(statement)).scalars().all())
    if await _persist_reconciled(db, events, now):
        events = list((await db.execute(statement)).scalars().all())
    return [event for event in events if is_visible_to(event, viewer_id)]


async def get_user_events(
    db: AsyncSession, user_id: int, now: Optional[dt.datetime] = None
) -> Tuple[List[Event], List[Event]]:
    """
    Events a user organizes and events the user attends.

    Returns:
        Tuple of (organized, attending)
    """
    organized_query = (
        _event_select()
        .where(Event.organizer_id == user_id)
        .order_by(Event.date, Event.time, Event.id)
    )
    attending_query = (
        _event_select()
        .where(Event.attendees.any(User.id == user_id))
        .order_by(Event.date, Event.time, Event.id)
    )

    organized = list((await db.execute(organized_query)).scalars().all())
    attending = list((await db.execute(attending_query)).scalars().all())

    if await _persist_reconciled(db, organized + attending, now):
        organized = list((await db.execute(organized_query)).scalars().all())
        attending = list((await db.execute(attending_query)).scalars().all())
    return organized, attending


async def create_event(
    db: AsyncSession, event: EventCreate, organizer: User, now: Optional[dt.datetime] = None
) -> Event:
    """
    Create a new event owned by ``organizer``.

    Args:
        db: Database session
        event: Event data
        organizer: The authenticated creator
        now: Reference instant for the initial status

    Returns:
        Created event
    """
    db_event = Event(
        **event.model_dump(),
        organizer_id=organizer.id,
        status=EventStatus.UPCOMING,
        attendee_count=0,
    )
    reconcile_status(db_event, now)

    db.add(db_event)
    await db.commit()

    logger.info(f"Created new event: {db_event.id} - {db_event.title} (organizer {organizer.id})")
    return await get_event(db, db_event.id, now)


async def update_event(
    db: AsyncSession,
    event_id: int,
    event: EventUpdate,
    actor_id: int,
    now: Optional[dt.datetime] = None,
) -> Event:
    """
    Update an existing event.

    Only fields present in the request are applied. The status is
    re-derived afterwards, so moving the date changes it accordingly;
    a cancelled event stays cancelled.

    Raises:
        NotFoundError: If the event does not exist
        AuthorizationError: If the actor is not the organizer
        ValidationError: If a required field is cleared or the capacity
            drops below the current attendee count
        ConflictError: If the event changed concurrently
    """
    db_event = await _require_event(db, event_id)
    ensure_organizer(db_event, actor_id)

    update_data = event.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field not in NULLABLE_FIELDS:
            raise ValidationError(field, "may not be null")

    max_attendees = update_data.get("max_attendees", db_event.max_attendees)
    if max_attendees is not None and max_attendees < db_event.attendee_count:
        raise ValidationError(
            "max_attendees",
            f"cannot be lower than the current attendee count ({db_event.attendee_count})",
        )

    for field, value in update_data.items():
        setattr(db_event, field, value)
    reconcile_status(db_event, now)

    await _commit_or_conflict(db, event_id)
    logger.info(f"Updated event {event_id}: {sorted(update_data)}")
    return await _load_event(db, event_id)


async def cancel_event(
    db: AsyncSession, event_id: int, actor_id: int
) -> Event:
    """Cancel an event. Cancellation is permanent."""
    db_event = await _require_event(db, event_id)
    ensure_organizer(db_event, actor_id)

    if db_event.status != EventStatus.CANCELLED:
        db_event.status = EventStatus.CANCELLED
        await _commit_or_conflict(db, event_id)
        logger.info(f"Cancelled event {event_id}")
    return await _load_event(db, event_id)


async def delete_event(db: AsyncSession, event_id: int, actor_id: int) -> None:
    """
    Delete an event together with all of its registrations.

    Raises:
        NotFoundError: If the event does not exist
        AuthorizationError: If the actor is not the organizer
    """
    db_event = await _require_event(db, event_id)
    ensure_organizer(db_event, actor_id)

    attendee_count = len(db_event.attendees)
    await db.delete(db_event)
    await _commit_or_conflict(db, event_id)
    logger.info(f"Deleted event {event_id} and {attendee_count} registrations")


async def get_attendees(db: AsyncSession, event_id: int, actor_id: int) -> List[User]:
    """The roster in join order; organizer only."""
    db_event = await _require_event(db, event_id)
    ensure_organizer(db_event, actor_id)
    return list(db_event.attendees)


async def check_eligibility(
    db: AsyncSession, event_id: int, user_id: int, now: Optional[dt.datetime] = None
) -> Tuple[Event, Eligibility, Eligibility]:
    """
    Evaluate join and leave eligibility without changing the roster.

    Returns:
        Tuple of (event, join eligibility, leave eligibility)
    """
    db_event = await get_event(db, event_id, now)
    if db_event is None:
        raise NotFoundError("Event", event_id)
    return db_event, can_join(db_event, user_id, now), can_leave(db_event, user_id, now)


async def _load_registration(
    db: AsyncSession, event_id: int, user_id: int
) -> Tuple[Event, User]:
    db_event = await _require_event(db, event_id)
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise NotFoundError("User", user_id)
    return db_event, user


async def join_event(
    db: AsyncSession, event_id: int, user_id: int, now: Optional[dt.datetime] = None
) -> Event:
    """
    Register a user for an event.

    The event row update (attendee count and version) and the roster row
    insert commit together. If another registration committed in between,
    the version check fails and ConflictError is raised.

    Raises:
        NotFoundError: If the event or user does not exist
        EligibilityDenied: If the guard refuses the join
        ConflictError: If the event changed concurrently
    """
    db_event, user = await _load_registration(db, event_id, user_id)
    reconcile_status(db_event, now)
    ensure_can_join(db_event, user_id, now)

    apply_join(db_event, user)
    await _commit_or_conflict(db, event_id)

    logger.info(f"User {user_id} joined event {event_id} ({db_event.attendee_count} attending)")
    return await _load_event(db, event_id)


async def leave_event(
    db: AsyncSession, event_id: int, user_id: int, now: Optional[dt.datetime] = None
) -> Event:
    """
    Remove a user's registration for an event.

    Raises:
        NotFoundError: If the event or user does not exist
        EligibilityDenied: If the guard refuses the leave
        ConflictError: If the event changed concurrently
    """
    db_event, user = await _load_registration(db, event_id, user_id)
    reconcile_status(db_event, now)
    ensure_can_leave(db_event, user_id, now)

    apply_leave(db_event, user)
    await _commit_or_conflict(db, event_id)

    logger.info(f"User {user_id} left event {event_id} ({db_event.attendee_count} attending)")
    return await _load_event(db, event_id)
