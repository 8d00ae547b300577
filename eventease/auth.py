"""Per-request viewer identity.

Bearer tokens are issued by the authentication service; this module only
verifies them and resolves the ``sub`` claim to a user. The resulting
``Viewer`` is passed explicitly to every handler that needs it.
"""

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from eventease.config import get_settings
from eventease.crud.user import get_user
from eventease.database import get_db
from eventease.exceptions import AuthorizationError
from eventease.logging_config import get_logger
from eventease.models.user import User, UserRole

logger = get_logger("auth")

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Viewer:
    """The identity making a request; ``user`` is None for anonymous callers."""
    user: Optional[User] = None

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> int:
    """
    Verify a bearer token and return the user id from its ``sub`` claim.

    Raises:
        HTTPException: 401 if the token is invalid, expired or malformed
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub"]},
        )
        return int(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.info(f"Rejected bearer token: {e}")
        raise _unauthorized("Invalid authentication token")


async def get_viewer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Viewer:
    """Resolve the optional bearer token into a Viewer."""
    if credentials is None:
        return Viewer()

    user_id = decode_token(credentials.credentials)
    user = await get_user(db, user_id)
    if user is None:
        raise _unauthorized("Unknown user")
    return Viewer(user=user)


async def get_current_user(viewer: Viewer = Depends(get_viewer)) -> User:
    """Require an authenticated caller."""
    if not viewer.is_authenticated:
        raise _unauthorized("Not authenticated")
    return viewer.user


async def get_current_organizer(user: User = Depends(get_current_user)) -> User:
    """Require an authenticated caller with the organizer role."""
    if user.role != UserRole.ORGANIZER:
        raise AuthorizationError("Only organizers can create events")
    return user
