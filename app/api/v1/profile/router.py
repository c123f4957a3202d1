from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_session
from app.auth.schemas import PortalSession
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import PreferencesResponse, PreferencesUpdate, TimezoneResponse, TimezoneUpdate
from . import service

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    payload: PreferencesUpdate,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(get_current_session),
) -> PreferencesResponse:
    try:
        return await service.update_preferences(db, session.user_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/timezone", response_model=TimezoneResponse)
async def update_timezone(
    payload: TimezoneUpdate,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(get_current_session),
) -> TimezoneResponse:
    try:
        return await service.update_timezone(db, session.user_id, payload.timezone)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
