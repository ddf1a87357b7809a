from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.models.user import User
from roomrent.services import dashboard

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await dashboard.stats(db)}


@router.get("/overview")
async def get_overview(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2020, le=2100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Room, tenant, revenue and alert counts for one billing period (default: this month)."""
    today = date.today()
    data = await dashboard.overview(db, month or today.month, year or today.year, today)
    return {"success": True, "data": data}


@router.get("/revenue")
async def get_revenue(
    year: int | None = Query(default=None, ge=2020, le=2100),
    months: int = Query(default=12, ge=1, le=24),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    today = date.today()
    data = await dashboard.revenue_series(db, year or today.year, months, today)
    return {"success": True, "data": data}


@router.get("/notifications")
async def get_notifications(
    limit: int = Query(default=10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await dashboard.notifications(db, limit)}
