from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import PortalSession, SessionProfile
from app.auth.security import decode_access_token
from app.core.models import Profile
from app.core.session_time import resolve_timezone
from app.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_session(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> PortalSession:
    """Resolve the caller's profile from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("user_id") or payload.get("sub")
    if not user_id_str:
        raise credentials_exception
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise credentials_exception

    profile = await db.get(Profile, user_id)
    if not profile:
        raise credentials_exception

    return PortalSession(
        user_id=profile.id,
        profile=SessionProfile(
            role=profile.role,
            # A stored zone the tz database no longer knows degrades to the default
            timezone=resolve_timezone(profile.timezone),
            locale=profile.locale or "en",
            display_name=profile.display_name,
            email=profile.email,
        ),
    )
