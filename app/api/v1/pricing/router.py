from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_session
from app.auth.schemas import PortalSession
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import PriceQuote
from . import service

router = APIRouter(prefix="/api/v1/pricing", tags=["pricing"])


@router.get("/quote", response_model=PriceQuote)
async def get_quote(
    class_type: str,
    term_id: UUID,
    currency: str = "CAD",
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(get_current_session),
) -> PriceQuote:
    """Prorated tuition for a class type if the caller enrolled today."""
    try:
        return await service.quote_class_price(db, class_type, term_id, currency.upper())
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
