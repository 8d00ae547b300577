from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventease.exceptions import ConflictError
from eventease.logging_config import get_logger
from eventease.models.user import User
from eventease.schemas.user import UserCreate

logger = get_logger("crud.user")


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    """Get a user by ID, or None if not found."""
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalars().first()


async def create_user(db: AsyncSession, user: UserCreate) -> User:
    """
    Create a user profile.

    Args:
        db: Database session
        user: Profile data

    Returns:
        Created user

    Raises:
        ConflictError: If the email address is already registered
    """
    email = user.email.lower()
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("Email already registered")

    db_user = User(
        first_name=user.first_name,
        last_name=user.last_name,
        email=email,
        role=user.role,
    )
    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email already registered") from e

    await db.refresh(db_user)
    logger.info(f"Created user {db_user.id} ({db_user.role.value})")
    return db_user
