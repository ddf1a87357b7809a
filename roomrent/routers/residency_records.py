"""Temporary residence / temporary absence registrations.

A tenant's records of the same type may not overlap; an open-ended record
(no end date) runs until it is closed.
"""
import logging
import uuid
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.core.errors import bad_request, conflict, not_found
from roomrent.core.pagination import paginate
from roomrent.models.enums import ResidencyType
from roomrent.models.tenant import ResidencyRecord, Tenant
from roomrent.models.user import User
from roomrent.schemas.common import Envelope, MessageResponse, Page
from roomrent.schemas.residency_record import (
    ResidencyRecordCreate,
    ResidencyRecordResponse,
    ResidencyRecordUpdate,
)
from roomrent.services.rules import find_overlapping

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/residency-records", tags=["residency-records"])

_SORT_COLUMNS = {
    "created_at": ResidencyRecord.created_at,
    "start_date": ResidencyRecord.start_date,
    "end_date": ResidencyRecord.end_date,
}


async def _load_record(db: AsyncSession, record_id: uuid.UUID) -> ResidencyRecord:
    result = await db.execute(
        select(ResidencyRecord)
        .options(selectinload(ResidencyRecord.tenant))
        .where(ResidencyRecord.id == record_id)
        .execution_options(populate_existing=True)
    )
    record = result.scalar_one_or_none()
    if not record:
        raise not_found("Residency record")
    return record


async def _ensure_no_overlap(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    record_type: str,
    start: date,
    end: date | None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    stmt = select(ResidencyRecord).where(
        ResidencyRecord.tenant_id == tenant_id,
        ResidencyRecord.type == record_type,
    )
    if exclude_id is not None:
        stmt = stmt.where(ResidencyRecord.id != exclude_id)
    clash = find_overlapping(start, end, (await db.execute(stmt)).scalars().all())
    if clash:
        until = clash.end_date.isoformat() if clash.end_date else "open-ended"
        raise conflict(
            "Overlapping residency record",
            f"Tenant already has a {record_type} record from {clash.start_date} to {until}",
        )


@router.get("", response_model=Page[ResidencyRecordResponse])
async def list_residency_records(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    tenant_id: uuid.UUID | None = None,
    type: ResidencyType | None = None,
    sort_by: Literal["created_at", "start_date", "end_date"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(ResidencyRecord)
    if tenant_id:
        stmt = stmt.where(ResidencyRecord.tenant_id == tenant_id)
    if type:
        stmt = stmt.where(ResidencyRecord.type == type.value)
    column = _SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.asc() if sort_order == "asc" else column.desc())

    records, pagination = await paginate(
        db, stmt, page, limit, selectinload(ResidencyRecord.tenant)
    )
    return {"data": records, "pagination": pagination}


@router.get("/{record_id}", response_model=Envelope[ResidencyRecordResponse])
async def get_residency_record(
    record_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await _load_record(db, record_id)}


@router.post("", response_model=Envelope[ResidencyRecordResponse], status_code=201)
async def create_residency_record(
    payload: ResidencyRecordCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await db.get(Tenant, payload.tenant_id):
        raise not_found("Tenant")
    await _ensure_no_overlap(
        db, payload.tenant_id, payload.type.value, payload.start_date, payload.end_date
    )

    record = ResidencyRecord(
        **payload.model_dump(exclude={"type"}), type=payload.type.value
    )
    db.add(record)
    await db.flush()
    logger.info(
        "Residency record %s for tenant %s created by %s",
        record.type, record.tenant_id, user.username,
    )
    return {"message": "Residency record created successfully", "data": await _load_record(db, record.id)}


@router.put("/{record_id}", response_model=Envelope[ResidencyRecordResponse])
async def update_residency_record(
    record_id: uuid.UUID,
    payload: ResidencyRecordUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await _load_record(db, record_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("type") is not None:
        data["type"] = data["type"].value
    # end_date and notes may be cleared explicitly; the rest ignore null
    data = {k: v for k, v in data.items() if v is not None or k in ("end_date", "notes")}

    start = data.get("start_date", record.start_date)
    end = data.get("end_date", record.end_date)
    if end is not None and end <= start:
        raise bad_request("Invalid dates", "end_date must be after start_date")
    await _ensure_no_overlap(
        db, record.tenant_id, data.get("type", record.type), start, end, exclude_id=record.id
    )

    for field, value in data.items():
        setattr(record, field, value)
    await db.flush()
    logger.info("Residency record %s updated by %s", record.id, user.username)
    return {"message": "Residency record updated successfully", "data": await _load_record(db, record.id)}


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_residency_record(
    record_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await db.get(ResidencyRecord, record_id):
        raise not_found("Residency record")
    await db.execute(delete(ResidencyRecord).where(ResidencyRecord.id == record_id))
    logger.info("Residency record %s deleted by %s", record_id, user.username)
    return {"message": "Residency record deleted successfully"}
