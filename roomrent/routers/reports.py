import logging
import uuid
from datetime import date, datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.core.deps import get_current_user
from roomrent.core.database import get_db
from roomrent.core.errors import bad_request
from roomrent.models.user import User
from roomrent.services import reports

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

_BUILDERS = {
    "revenue": reports.revenue_report,
    "occupancy": reports.occupancy_report,
    "bills": reports.bills_report,
}


class ReportFilters:
    """Shared ``start_date`` / ``end_date`` / ``room_ids`` query parameters."""

    def __init__(
        self,
        start_date: date,
        end_date: date,
        room_ids: list[uuid.UUID] | None = Query(default=None),
    ):
        if end_date < start_date:
            raise bad_request("Invalid date range", "end_date must not be before start_date")
        self.start_date = start_date
        self.end_date = end_date
        self.room_ids = room_ids or None

    def as_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "room_ids": [str(r) for r in self.room_ids] if self.room_ids else None,
        }


async def _report(report_type: str, filters: ReportFilters, db: AsyncSession) -> dict:
    rows, summary = await _BUILDERS[report_type](
        db, filters.start_date, filters.end_date, filters.room_ids
    )
    return {
        "success": True,
        "data": {
            "type": report_type,
            "filters": filters.as_dict(),
            "summary": summary,
            "report_data": rows,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "total_records": len(rows),
        },
    }


@router.get("/revenue")
async def revenue_report(
    filters: ReportFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _report("revenue", filters, db)


@router.get("/occupancy")
async def occupancy_report(
    filters: ReportFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _report("occupancy", filters, db)


@router.get("/bills")
async def bills_report(
    filters: ReportFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _report("bills", filters, db)


@router.get("/summary")
async def summary_report(
    filters: ReportFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await reports.summary_report(db, filters.start_date, filters.end_date, filters.room_ids)
    return {"success": True, "data": data}


@router.get("/export")
async def export_report(
    type: Literal["revenue", "occupancy", "bills"],
    filename: str | None = Query(default=None, max_length=100, pattern=r"^[\w.-]+$"),
    filters: ReportFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Download a report's monthly rows as CSV."""
    rows, _ = await _BUILDERS[type](db, filters.start_date, filters.end_date, filters.room_ids)
    name = filename or f"{type}-report-{filters.start_date}-{filters.end_date}"
    if not name.endswith(".csv"):
        name += ".csv"
    logger.info("%s report exported by %s (%d rows)", type, user.username, len(rows))
    return StreamingResponse(
        iter([reports.rows_to_csv(type, rows)]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )
