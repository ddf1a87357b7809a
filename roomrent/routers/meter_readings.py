import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.core.database import get_db, utcnow
from roomrent.core.deps import get_current_user
from roomrent.core.errors import conflict, not_found
from roomrent.core.pagination import paginate
from roomrent.models.room import MeterReading, Room
from roomrent.models.user import User
from roomrent.schemas.common import Envelope, MessageResponse, Page
from roomrent.schemas.meter_reading import (
    MeterReadingCreate,
    MeterReadingResponse,
    MeterReadingUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meter-readings", tags=["meter-readings"])


async def _get_reading(reading_id: uuid.UUID, db: AsyncSession) -> MeterReading:
    reading = await db.get(MeterReading, reading_id)
    if not reading:
        raise not_found("Meter reading")
    return reading


@router.get("", response_model=Page[MeterReadingResponse])
async def list_meter_readings(
    room_id: uuid.UUID | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2020, le=2100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(MeterReading)
    if room_id:
        stmt = stmt.where(MeterReading.room_id == room_id)
    if month:
        stmt = stmt.where(MeterReading.month == month)
    if year:
        stmt = stmt.where(MeterReading.year == year)
    stmt = stmt.order_by(MeterReading.year.desc(), MeterReading.month.desc())

    readings, pagination = await paginate(db, stmt, page, limit)
    return {"data": readings, "pagination": pagination}


@router.post("", response_model=Envelope[MeterReadingResponse], status_code=201)
async def create_meter_reading(
    payload: MeterReadingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    room = await db.get(Room, payload.room_id)
    if not room:
        raise not_found("Room")

    existing = await db.execute(
        select(MeterReading.id).where(
            MeterReading.room_id == payload.room_id,
            MeterReading.month == payload.month,
            MeterReading.year == payload.year,
        )
    )
    if existing.first():
        raise conflict(
            "Meter reading already exists",
            f"Room {room.number} already has a reading for {payload.month:02d}/{payload.year}",
        )

    reading = MeterReading(**payload.model_dump())
    if reading.verified_by:
        reading.verified_at = utcnow()
    db.add(reading)
    await db.flush()
    await db.refresh(reading)
    logger.info(
        "Meter reading %02d/%d for room %s recorded by %s",
        reading.month, reading.year, room.number, user.username,
    )
    return {"message": "Meter reading created successfully", "data": reading}


@router.put("/{reading_id}", response_model=Envelope[MeterReadingResponse])
async def update_meter_reading(
    reading_id: uuid.UUID,
    payload: MeterReadingUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reading = await _get_reading(reading_id, db)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in data.items():
        setattr(reading, field, value)
    if "verified_by" in data:
        reading.verified_at = utcnow()
    await db.flush()
    await db.refresh(reading)
    logger.info("Meter reading %s updated by %s", reading.id, user.username)
    return {"message": "Meter reading updated successfully", "data": reading}


@router.delete("/{reading_id}", response_model=MessageResponse)
async def delete_meter_reading(
    reading_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _get_reading(reading_id, db)
    await db.execute(delete(MeterReading).where(MeterReading.id == reading_id))
    logger.info("Meter reading %s deleted by %s", reading_id, user.username)
    return {"message": "Meter reading deleted successfully"}
