from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Callable, Optional
from app.core.security import decode_token
from app.core.logging import logger
from app.dependencies import get_storage
from app.shared.exceptions import CredentialsException, ForbiddenException
from app.storage import Storage
from app.storage.models import User, UserRole


# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    storage: Storage = Depends(get_storage),
) -> dict:
    """
    Dependency resolving the live session behind a bearer token.

    Returns:
        dict: Session data with its id under ``sid``

    Raises:
        CredentialsException: If the token is missing or invalid, or its session is gone
    """
    if credentials is None:
        raise CredentialsException()

    payload = decode_token(credentials.credentials)
    if payload is None or "sid" not in payload:
        raise CredentialsException("Invalid authentication credentials")

    sid = payload["sid"]
    session = await storage.session_store.get(sid)
    if session is None:
        logger.debug("Token refers to an expired or destroyed session")
        raise CredentialsException("Session expired")

    return {**session, "sid": sid}


async def get_current_user(
    session: dict = Depends(get_current_session),
    storage: Storage = Depends(get_storage),
) -> User:
    """
    Dependency to get current authenticated user.

    Raises:
        CredentialsException: If the session's user no longer exists
    """
    user = await storage.get_user(session["user_id"])
    if user is None:
        raise CredentialsException("User not found")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    storage: Storage = Depends(get_storage),
) -> Optional[User]:
    """Current user when a bearer token is sent, None for anonymous requests."""
    if credentials is None:
        return None
    session = await get_current_session(credentials, storage)
    return await get_current_user(session, storage)


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only lets users with one of ``roles`` through.

    Usage:
        current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF))
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenException()
        return current_user

    return role_checker
