from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from eventease.auth import get_current_user
from eventease.crud.event import get_user_events
from eventease.crud.user import create_user
from eventease.database import get_db
from eventease.exceptions import EventEaseError
from eventease.logging_config import get_logger
from eventease.models.user import User
from eventease.schemas.event import EventResponse, MyEventsResponse
from eventease.schemas.user import UserCreate, UserResponse

router = APIRouter()
logger = get_logger("api.users")


@router.post("/", response_model=UserResponse, status_code=201)
async def create_new_user(user: UserCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a user profile. Credentials are managed by the auth service.
    """
    try:
        return await create_user(db, user)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/me", response_model=UserResponse)
async def read_current_user(user: User = Depends(get_current_user)):
    """
    The caller's profile.
    """
    return user


@router.get("/me/events", response_model=MyEventsResponse)
async def read_my_events(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Events the caller organizes and events the caller is registered for.
    """
    try:
        organized, attending = await get_user_events(db, user.id)
    except (HTTPException, EventEaseError):
        raise
    except Exception as e:
        logger.error(f"Error retrieving events of user {user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return MyEventsResponse(
        organized=[EventResponse.model_validate(event) for event in organized],
        attending=[EventResponse.model_validate(event) for event in attending],
    )
