import datetime as dt
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from eventease.auth import Viewer, get_current_organizer, get_current_user, get_viewer
from eventease.config import get_settings
from eventease.crud.event import (
    cancel_event,
    check_eligibility,
    create_event,
    delete_event,
    get_attendees,
    get_calendar_events,
    get_event,
    get_events,
    get_organizer_events,
    join_event,
    leave_event,
    update_event,
)
from eventease.database import get_db
from eventease.exceptions import ConflictError, EventEaseError
from eventease.logging_config import get_logger
from eventease.models.user import User
from eventease.schemas.event import EventCreate, EventListResponse, EventResponse, EventUpdate
from eventease.schemas.registration import EligibilityResponse
from eventease.schemas.user import AttendeeResponse
from eventease.services.visibility import EventQuery

router = APIRouter()
logger = get_logger("api.events")
settings = get_settings()

# A registration that lost the optimistic version check is retried once with
# freshly loaded state; the guard then decides again.
retry_on_conflict = retry(
    retry=retry_if_exception_type(ConflictError),
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=0.05, max=0.5),
    reraise=True,
)


@retry_on_conflict
async def _join_with_retry(db: AsyncSession, event_id: int, user_id: int):
    return await join_event(db, event_id, user_id)


@retry_on_conflict
async def _leave_with_retry(db: AsyncSession, event_id: int, user_id: int):
    return await leave_event(db, event_id, user_id)


@router.get("/", response_model=EventListResponse)
async def read_events(
    category: Optional[str] = Query(None, description="Category, or 'all'"),
    search: Optional[str] = Query(None, description="Case-insensitive search in title and description"),
    organizer_id: Optional[int] = Query(None, description="Only events by this organizer"),
    day: Optional[dt.date] = Query(None, description="Only events on this date"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"),
    viewer: Viewer = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    """
    List events visible to the caller, with optional filtering and pagination.
    """
    query = EventQuery(
        viewer_id=viewer.user_id,
        category=category,
        search=search,
        organizer_id=organizer_id,
        day=day,
        page=page,
        size=size,
    )
    try:
        events, total = await get_events(db, query)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error retrieving events: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return EventListResponse(
        items=[EventResponse.model_validate(event) for event in events],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 1,
    )


@router.get("/calendar/{year}/{month}", response_model=List[EventResponse])
async def read_calendar_events(
    year: int = Path(..., ge=1, le=9999),
    month: int = Path(..., ge=1, le=12),
    viewer: Viewer = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    """
    Visible events in one month, ordered by date and start time.
    """
    try:
        return await get_calendar_events(db, year, month, viewer_id=viewer.user_id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error retrieving calendar {year}-{month:02d}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/organizer/{user_id}", response_model=List[EventResponse])
async def read_organizer_events(
    user_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    """
    Visible events organized by a user.
    """
    try:
        return await get_organizer_events(db, user_id, viewer_id=viewer.user_id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error retrieving events of organizer {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=EventResponse, status_code=201)
async def create_new_event(
    event: EventCreate,
    organizer: User = Depends(get_current_organizer),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new event owned by the caller.
    """
    try:
        return await create_event(db=db, event=event, organizer=organizer)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error creating event: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{event_id}", response_model=EventResponse)
async def read_event(event_id: int, db: AsyncSession = Depends(get_db)):
    """
    Get a specific event by ID.
    """
    try:
        event = await get_event(db, event_id=event_id)
        if event is None:
            raise HTTPException(status_code=404, detail="Event not found")
        return event
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error retrieving event {event_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_details(
    event_id: int,
    event: EventUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update an event. Organizer only.
    """
    try:
        return await update_event(db=db, event_id=event_id, event=event, actor_id=user.id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error updating event {event_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{event_id}/cancel", response_model=EventResponse)
async def cancel_event_by_id(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel an event. Organizer only; a cancelled event never becomes active again.
    """
    try:
        return await cancel_event(db=db, event_id=event_id, actor_id=user.id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error cancelling event {event_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{event_id}", status_code=204)
async def delete_event_by_id(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an event and all of its registrations. Organizer only.
    """
    try:
        await delete_event(db=db, event_id=event_id, actor_id=user.id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error deleting event {event_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)


@router.post("/{event_id}/join", response_model=EventResponse)
async def join_event_by_id(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Register the caller for an event.
    """
    user_id = user.id
    try:
        return await _join_with_retry(db, event_id, user_id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error joining event {event_id} for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{event_id}/leave", response_model=EventResponse)
async def leave_event_by_id(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel the caller's registration for an event.
    """
    user_id = user.id
    try:
        return await _leave_with_retry(db, event_id, user_id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error leaving event {event_id} for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{event_id}/eligibility", response_model=EligibilityResponse)
async def read_eligibility(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Report whether the caller may join or leave an event right now.
    """
    try:
        event, join, leave = await check_eligibility(db, event_id, user.id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error checking eligibility for event {event_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return EligibilityResponse(event_id=event.id, status=event.status, can_join=join, can_leave=leave)


@router.get("/{event_id}/attendees", response_model=List[AttendeeResponse])
async def read_attendees(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    The event roster in join order. Organizer only.
    """
    try:
        return await get_attendees(db, event_id, actor_id=user.id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error retrieving attendees of event {event_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
