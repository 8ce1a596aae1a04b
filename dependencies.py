import logging
from typing import Annotated, Callable, Optional

from fastapi import Depends, Request

from errors import ForbiddenError, UnauthorizedError
from models.user import User, UserRole
from services.firestore import FirestoreDB
from services.security import decode_access_token

logger = logging.getLogger(__name__)


async def get_firestore(request: Request) -> FirestoreDB:
    """ Get Firestore DB from app state """
    return request.app.state.firestore


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split("Bearer ", 1)[1].strip()
    return token or None


def _load_user(token: str, db: FirestoreDB) -> User:
    claims = decode_access_token(token)
    user_data = db.get_user(claims["sub"])
    if user_data is None:
        raise UnauthorizedError("User no longer exists")

    user = User.from_document(user_data)
    if not user.is_active:
        raise UnauthorizedError("Account is deactivated")
    return user


async def get_current_user(
        request: Request,
        db: Annotated[FirestoreDB, Depends(get_firestore)],
) -> User:
    """
    Verify the JWT from the Authorization header and load the user it names
    """
    token = _bearer_token(request)
    if token is None:
        raise UnauthorizedError("Not authorized to access this route")
    return _load_user(token, db)


async def get_optional_user(
        request: Request,
        db: Annotated[FirestoreDB, Depends(get_firestore)],
) -> Optional[User]:
    """Same as get_current_user, but anonymous callers (or bad tokens) get None"""
    token = _bearer_token(request)
    if token is None:
        return None
    try:
        return _load_user(token, db)
    except UnauthorizedError as e:
        logger.debug("Ignoring credentials on public route: %s", e.message)
        return None


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory admitting only users holding one of the given roles"""

    async def check_role(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in roles:
            raise ForbiddenError(f"User role {user.role.value} is not authorized to access this route")
        return user

    return check_role


# Type annotations for dependency injection
Firestore = Annotated[FirestoreDB, Depends(get_firestore)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
