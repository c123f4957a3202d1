from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_role
from app.auth.schemas import PortalSession
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import PayrollDataset
from . import service

router = APIRouter(prefix="/api/v1/payroll", tags=["payroll"])


@router.get("/summary", response_model=PayrollDataset)
async def payroll_summary(
    start: Optional[str] = None,
    end: Optional[str] = None,
    coach_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin"])),
) -> PayrollDataset:
    """Sessions, per-coach summary and totals for [start, end]. Defaults to month to date."""
    try:
        start_day, end_day = service.parse_payroll_date_range(start, end)
        return await service.fetch_payroll_dataset(db, start_day, end_day, coach_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/coach/{coach_id}", response_model=PayrollDataset)
async def coach_payroll(
    coach_id: UUID,
    start: Optional[str] = None,
    end: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin", "coach", "ta"])),
) -> PayrollDataset:
    """A coach may only read their own hours; admins may read anyone's."""
    if session.profile.role != "admin" and session.user_id != coach_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    try:
        start_day, end_day = service.parse_payroll_date_range(start, end)
        return await service.fetch_payroll_dataset(db, start_day, end_day, coach_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/export")
async def export_payroll(
    start: Optional[str] = None,
    end: Optional[str] = None,
    coach_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin"])),
) -> Response:
    try:
        start_day, end_day = service.parse_payroll_date_range(start, end)
        dataset = await service.fetch_payroll_dataset(db, start_day, end_day, coach_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    content = service.build_payroll_workbook(dataset)
    filename = f"payroll_{start_day.isoformat()}_{end_day.isoformat()}.xlsx"
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
