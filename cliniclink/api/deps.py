from collections.abc import Callable
from datetime import datetime

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.core.clock import local_now
from cliniclink.core.db import get_session
from cliniclink.core.security import decode_access_token
from cliniclink.models.user import User
from cliniclink.services.auth_service import get_user_by_id
from cliniclink.services.notification_channel import NotificationChannel

security = HTTPBearer(auto_error=False)
optional_bearer = HTTPBearer(auto_error=False)


def get_clock() -> Callable[[], datetime]:
    """Source of the clinic's current local time; overridden in tests."""
    return local_now


def get_notification_channel(request: Request) -> NotificationChannel:
    return request.app.state.notification_channel


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        uid = int(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await get_user_by_id(session, uid)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> User | None:
    """Identity if a valid bearer token is present, else None (booking checks it itself)."""
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        return None
    try:
        uid = int(user_id)
    except ValueError:
        return None
    return await get_user_by_id(session, uid)
