import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.core.errors import bad_request, conflict, not_found
from roomrent.core.pagination import paginate
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract, ContractTenant
from roomrent.models.enums import BillStatus, ContractStatus, RoomStatus
from roomrent.models.room import MeterReading, Room
from roomrent.models.user import User
from roomrent.schemas.common import Envelope, MessageResponse, Page
from roomrent.schemas.contract import ContractSummary
from roomrent.schemas.room import RoomCreate, RoomResponse, RoomStatusUpdate, RoomUpdate
from roomrent.schemas.views import RoomDetail, RoomListItem
from roomrent.services.occupancy import active_contracts
from roomrent.services.rules import manual_room_status_conflict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])

_UNSETTLED = (BillStatus.UNPAID.value, BillStatus.OVERDUE.value)


# ─── Helpers ────────────────────────────────────────────────────────────────

async def _get_room(room_id: uuid.UUID, db: AsyncSession) -> Room:
    room = await db.get(Room, room_id)
    if not room:
        raise not_found("Room")
    return room


async def _ensure_number_free(
    db: AsyncSession, number: str, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(Room.id).where(Room.number == number)
    if exclude_id is not None:
        stmt = stmt.where(Room.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise conflict("Room number already exists", f"Room {number} already exists")


async def _check_manual_status(db: AsyncSession, room_id: uuid.UUID | None, new_status: str) -> None:
    count = len(await active_contracts(db, room_id)) if room_id else 0
    reason = manual_room_status_conflict(new_status, count)
    if reason:
        raise conflict("Room status conflict", reason)


def _contract_options():
    return selectinload(Contract.tenant_links).selectinload(ContractTenant.tenant)


# ─── List / detail ──────────────────────────────────────────────────────────

@router.get("", response_model=Page[RoomListItem])
async def list_rooms(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: RoomStatus | None = None,
    floor: int | None = Query(default=None, ge=1),
    type: str | None = None,
    search: str | None = Query(default=None, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Room)
    if status:
        stmt = stmt.where(Room.status == status.value)
    if floor is not None:
        stmt = stmt.where(Room.floor == floor)
    if type:
        stmt = stmt.where(Room.type == type)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Room.number.ilike(pattern), Room.type.ilike(pattern)))
    stmt = stmt.order_by(Room.floor, Room.number)

    rooms, pagination = await paginate(db, stmt, page, limit)
    room_ids = [r.id for r in rooms]

    contracts_by_room: dict[uuid.UUID, list[Contract]] = {rid: [] for rid in room_ids}
    unpaid_by_room: dict[uuid.UUID, int] = {}
    if room_ids:
        contracts = await db.execute(
            select(Contract)
            .options(_contract_options())
            .where(
                Contract.room_id.in_(room_ids),
                Contract.status == ContractStatus.ACTIVE.value,
            )
            .order_by(Contract.start_date)
        )
        for contract in contracts.scalars().all():
            contracts_by_room[contract.room_id].append(contract)

        unpaid = await db.execute(
            select(Bill.room_id, func.count(Bill.id))
            .where(Bill.room_id.in_(room_ids), Bill.status.in_(_UNSETTLED))
            .group_by(Bill.room_id)
        )
        unpaid_by_room = dict(unpaid.all())

    items = [
        RoomListItem(
            **RoomResponse.model_validate(room).model_dump(),
            active_contracts=[ContractSummary.model_validate(c) for c in contracts_by_room[room.id]],
            active_contract_count=len(contracts_by_room[room.id]),
            unpaid_bill_count=unpaid_by_room.get(room.id, 0),
        )
        for room in rooms
    ]
    return {"data": items, "pagination": pagination}


@router.get("/{room_id}", response_model=Envelope[RoomDetail])
async def get_room(
    room_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    room = await _get_room(room_id, db)

    contracts = await db.execute(
        select(Contract)
        .options(_contract_options())
        .where(Contract.room_id == room_id)
        .order_by(Contract.created_at.desc())
    )
    bills = await db.execute(
        select(Bill)
        .where(Bill.room_id == room_id)
        .order_by(Bill.year.desc(), Bill.month.desc())
        .limit(12)
    )
    readings = await db.execute(
        select(MeterReading)
        .where(MeterReading.room_id == room_id)
        .order_by(MeterReading.year.desc(), MeterReading.month.desc())
        .limit(12)
    )
    detail = RoomDetail.model_validate(
        {
            **RoomResponse.model_validate(room).model_dump(),
            "contracts": [ContractSummary.model_validate(c) for c in contracts.scalars().all()],
            "bills": list(bills.scalars().all()),
            "meter_readings": list(readings.scalars().all()),
        },
        from_attributes=True,
    )
    return {"data": detail}


# ─── Writes ─────────────────────────────────────────────────────────────────

@router.post("", response_model=Envelope[RoomResponse], status_code=201)
async def create_room(
    payload: RoomCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _ensure_number_free(db, payload.number)
    await _check_manual_status(db, None, payload.status.value)

    room = Room(**payload.model_dump(exclude={"status"}), status=payload.status.value)
    db.add(room)
    await db.flush()
    await db.refresh(room)
    logger.info("Room %s created by %s", room.number, user.username)
    return {"message": "Room created successfully", "data": room}


@router.put("/{room_id}", response_model=Envelope[RoomResponse])
async def update_room(
    room_id: uuid.UUID,
    payload: RoomUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    room = await _get_room(room_id, db)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "number" in data and data["number"] != room.number:
        await _ensure_number_free(db, data["number"], exclude_id=room.id)
    if "status" in data:
        data["status"] = data["status"].value
        if data["status"] != room.status:
            await _check_manual_status(db, room.id, data["status"])

    for field, value in data.items():
        setattr(room, field, value)
    await db.flush()
    await db.refresh(room)
    logger.info("Room %s updated by %s", room.number, user.username)
    return {"message": "Room updated successfully", "data": room}


@router.patch("/{room_id}/status", response_model=Envelope[RoomResponse])
async def update_room_status(
    room_id: uuid.UUID,
    payload: RoomStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    room = await _get_room(room_id, db)
    if payload.status.value != room.status:
        await _check_manual_status(db, room.id, payload.status.value)
        logger.info(
            "Room %s status %s -> %s by %s",
            room.number, room.status, payload.status.value, user.username,
        )
        room.status = payload.status.value
        await db.flush()
        await db.refresh(room)
    return {"message": "Room status updated successfully", "data": room}


@router.delete("/{room_id}", response_model=MessageResponse)
async def delete_room(
    room_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    room = await _get_room(room_id, db)

    active = await active_contracts(db, room.id)
    if active:
        raise bad_request(
            "Cannot delete room",
            f"Room has {len(active)} active contract(s)",
            {"active_contracts": [c.contract_number for c in active]},
        )
    unpaid = await db.scalar(
        select(func.count(Bill.id)).where(Bill.room_id == room.id, Bill.status.in_(_UNSETTLED))
    )
    if unpaid:
        raise bad_request("Cannot delete room", f"Room has {unpaid} unpaid bill(s)")

    number = room.number
    contract_ids = select(Contract.id).where(Contract.room_id == room.id)
    await db.execute(delete(MeterReading).where(MeterReading.room_id == room.id))
    await db.execute(delete(Bill).where(Bill.room_id == room.id))
    await db.execute(delete(ContractTenant).where(ContractTenant.contract_id.in_(contract_ids)))
    await db.execute(delete(Contract).where(Contract.room_id == room.id))
    await db.execute(delete(Room).where(Room.id == room.id))
    logger.info("Room %s deleted by %s", number, user.username)
    return {"message": "Room deleted successfully"}
