from typing import Sequence

from fastapi import Depends, HTTPException, status

from app.auth.dependencies import get_current_session
from app.auth.schemas import PortalSession


def require_role(allowed_roles: Sequence[str]):
    """
    Dependency factory returning the session when its role is allowed.

    Example:
        session: PortalSession = Depends(require_role(["admin", "coach"]))
    """
    allowed = {getattr(role, "value", role) for role in allowed_roles}

    async def _checker(session: PortalSession = Depends(get_current_session)) -> PortalSession:
        if session.profile.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return session

    return _checker
