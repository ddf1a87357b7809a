"""
Contracts router.

Creating or changing a contract runs these checks, in order:
  1. contract number is unique                       -> 409
  2. the room exists                                 -> 404
  3. no other ACTIVE contract overlaps on that room  -> 409
  4. every tenant exists                             -> 404
  5. the primary tenant is one of the tenants        -> 400

Room status follows the contract: an ACTIVE contract occupies its room, and
the room is released once its last ACTIVE contract goes away.
"""
import logging
import uuid
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.core.errors import ApiError, bad_request, conflict, not_found
from roomrent.core.pagination import paginate
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract, ContractTenant
from roomrent.models.enums import BillStatus, ContractStatus
from roomrent.models.room import Room
from roomrent.models.tenant import Tenant
from roomrent.models.user import User
from roomrent.schemas.bill import BillSummary
from roomrent.schemas.common import Envelope, MessageResponse, Page
from roomrent.schemas.contract import (
    CheckoutRequest,
    ContractCreate,
    ContractNumberResponse,
    ContractResponse,
    ContractStatusUpdate,
    ContractUpdate,
)
from roomrent.schemas.views import ContractListItem, ContractWithRoom
from roomrent.services.occupancy import apply_transition, find_conflicting_contract, release_room
from roomrent.services.periods import CONTRACT_NUMBER_PREFIX, next_contract_number

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["contracts"])

_SORT_COLUMNS = {
    "created_at": Contract.created_at,
    "contract_number": Contract.contract_number,
    "start_date": Contract.start_date,
    "end_date": Contract.end_date,
}
_UNSETTLED = (BillStatus.UNPAID.value, BillStatus.OVERDUE.value)
_ACTIVE = ContractStatus.ACTIVE.value
_TERMINATED = ContractStatus.TERMINATED.value


# ─── Helpers ────────────────────────────────────────────────────────────────

def _tenant_options():
    return selectinload(Contract.tenant_links).selectinload(ContractTenant.tenant)


async def _load_contract(db: AsyncSession, contract_id: uuid.UUID) -> Contract:
    result = await db.execute(
        select(Contract)
        .options(selectinload(Contract.room), _tenant_options(), selectinload(Contract.bills))
        .where(Contract.id == contract_id)
        .execution_options(populate_existing=True)
    )
    contract = result.scalar_one_or_none()
    if not contract:
        raise not_found("Contract")
    return contract


async def _next_number(db: AsyncSession, year: int) -> str:
    latest = await db.scalar(
        select(Contract.contract_number)
        .where(Contract.contract_number.like(f"{CONTRACT_NUMBER_PREFIX}{year}%"))
        .order_by(Contract.contract_number.desc())
        .limit(1)
    )
    return next_contract_number(year, latest)


async def _ensure_number_free(
    db: AsyncSession, number: str, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(Contract.id).where(Contract.contract_number == number)
    if exclude_id is not None:
        stmt = stmt.where(Contract.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise conflict("Contract number already exists", f"Contract {number} already exists")


async def _ensure_room_exists(db: AsyncSession, room_id: uuid.UUID) -> Room:
    room = await db.get(Room, room_id)
    if not room:
        raise not_found("Room")
    return room


async def _ensure_room_available(
    db: AsyncSession,
    room_id: uuid.UUID,
    start: date,
    end: date,
    exclude_id: uuid.UUID | None = None,
) -> None:
    clash = await find_conflicting_contract(db, room_id, start, end, exclude_id)
    if clash:
        raise conflict(
            "Room not available",
            f"Room already has active contract {clash.contract_number} "
            f"from {clash.start_date} to {clash.end_date}",
            {"conflicting_contract": clash.contract_number},
        )


async def _validate_tenants(
    db: AsyncSession,
    tenant_ids: list[uuid.UUID],
    primary_id: uuid.UUID | None,
) -> uuid.UUID:
    """Check every tenant exists; return the primary tenant id."""
    found = set(
        (await db.execute(select(Tenant.id).where(Tenant.id.in_(tenant_ids)))).scalars().all()
    )
    missing = [str(t) for t in tenant_ids if t not in found]
    if missing:
        raise ApiError(
            status.HTTP_404_NOT_FOUND,
            "One or more tenants not found",
            f"{len(missing)} tenant(s) do not exist",
            {"missing_tenant_ids": missing},
        )
    primary = primary_id or tenant_ids[0]
    if primary not in tenant_ids:
        raise bad_request("Invalid primary tenant", "Primary tenant must be one of the contract tenants")
    return primary


async def _replace_tenants(
    db: AsyncSession,
    contract: Contract,
    tenant_ids: list[uuid.UUID],
    primary: uuid.UUID,
) -> None:
    await db.execute(delete(ContractTenant).where(ContractTenant.contract_id == contract.id))
    db.expire(contract, ["tenant_links"])
    for tenant_id in tenant_ids:
        db.add(ContractTenant(contract_id=contract.id, tenant_id=tenant_id, is_primary=tenant_id == primary))


async def _unsettled_bill_count(db: AsyncSession, contract_id: uuid.UUID) -> int:
    return await db.scalar(
        select(func.count(Bill.id)).where(Bill.contract_id == contract_id, Bill.status.in_(_UNSETTLED))
    ) or 0


def _stamp_termination(contract: Contract, old_status: str | None, new_status: str) -> None:
    if new_status == _TERMINATED:
        if old_status != _TERMINATED:
            contract.terminated_at = date.today()
    else:
        contract.terminated_at = None


async def _change_status(db: AsyncSession, contract: Contract, new_status: str) -> None:
    """Move a contract to ``new_status`` and keep its room in step."""
    old_status = contract.status
    if new_status == old_status:
        return
    if new_status == _ACTIVE:
        await _ensure_room_available(
            db, contract.room_id, contract.start_date, contract.end_date, exclude_id=contract.id
        )
    _stamp_termination(contract, old_status, new_status)
    contract.status = new_status
    await db.flush()
    await apply_transition(db, contract.room_id, contract.id, old_status, new_status)


# ─── List / detail ──────────────────────────────────────────────────────────

@router.get("", response_model=Page[ContractListItem])
async def list_contracts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status_filter: ContractStatus | None = Query(default=None, alias="status"),
    room_id: uuid.UUID | None = None,
    tenant_id: uuid.UUID | None = None,
    search: str | None = Query(default=None, max_length=100),
    sort_by: Literal["created_at", "contract_number", "start_date", "end_date"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Contract)
    if status_filter:
        stmt = stmt.where(Contract.status == status_filter.value)
    if room_id:
        stmt = stmt.where(Contract.room_id == room_id)
    if tenant_id:
        stmt = stmt.where(
            Contract.id.in_(
                select(ContractTenant.contract_id).where(ContractTenant.tenant_id == tenant_id)
            )
        )
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Contract.contract_number.ilike(pattern),
                Contract.room_id.in_(select(Room.id).where(Room.number.ilike(pattern))),
                Contract.id.in_(
                    select(ContractTenant.contract_id)
                    .join(Tenant, ContractTenant.tenant_id == Tenant.id)
                    .where(Tenant.full_name.ilike(pattern))
                ),
            )
        )
    column = _SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.asc() if sort_order == "asc" else column.desc())

    contracts, pagination = await paginate(
        db, stmt, page, limit, selectinload(Contract.room), _tenant_options()
    )

    recent: dict[uuid.UUID, list[Bill]] = {c.id: [] for c in contracts}
    if contracts:
        bills = await db.execute(
            select(Bill)
            .where(Bill.contract_id.in_(list(recent)))
            .order_by(Bill.year.desc(), Bill.month.desc())
        )
        for bill in bills.scalars().all():
            if len(recent[bill.contract_id]) < 3:
                recent[bill.contract_id].append(bill)

    items = [
        ContractListItem(
            **ContractWithRoom.model_validate(c).model_dump(),
            recent_bills=[BillSummary.model_validate(b) for b in recent[c.id]],
        )
        for c in contracts
    ]
    return {"data": items, "pagination": pagination}


@router.get("/generate-number", response_model=ContractNumberResponse)
async def generate_contract_number(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"contract_number": await _next_number(db, date.today().year)}


@router.get("/{contract_id}", response_model=Envelope[ContractResponse])
async def get_contract(
    contract_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await _load_contract(db, contract_id)}


# ─── Create / update ────────────────────────────────────────────────────────

@router.post("", response_model=Envelope[ContractResponse], status_code=201)
async def create_contract(
    payload: ContractCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if payload.contract_number:
        number = payload.contract_number
        await _ensure_number_free(db, number)
    else:
        number = await _next_number(db, date.today().year)

    await _ensure_room_exists(db, payload.room_id)
    await _ensure_room_available(db, payload.room_id, payload.start_date, payload.end_date)
    primary = await _validate_tenants(db, payload.tenant_ids, payload.primary_tenant_id)

    contract = Contract(
        contract_number=number,
        room_id=payload.room_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        deposit=payload.deposit,
        status=payload.status.value,
        notes=payload.notes,
    )
    _stamp_termination(contract, None, contract.status)
    db.add(contract)
    await db.flush()
    for tenant_id in payload.tenant_ids:
        db.add(ContractTenant(contract_id=contract.id, tenant_id=tenant_id, is_primary=tenant_id == primary))
    await db.flush()
    await apply_transition(db, contract.room_id, contract.id, None, contract.status)

    logger.info("Contract %s created by %s", number, user.username)
    return {"message": "Contract created successfully", "data": await _load_contract(db, contract.id)}


@router.put("/{contract_id}", response_model=Envelope[ContractResponse])
async def update_contract(
    contract_id: uuid.UUID,
    payload: ContractUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contract = await _load_contract(db, contract_id)
    data = payload.model_dump(exclude_unset=True)
    tenant_ids = data.pop("tenant_ids", None)
    primary_id = data.pop("primary_tenant_id", None)
    data = {k: v for k, v in data.items() if v is not None or k == "notes"}
    if "status" in data:
        data["status"] = data["status"].value

    if "contract_number" in data and data["contract_number"] != contract.contract_number:
        await _ensure_number_free(db, data["contract_number"], exclude_id=contract.id)

    old_room_id = contract.room_id
    old_status = contract.status
    room_id = data.get("room_id", old_room_id)
    if room_id != old_room_id:
        await _ensure_room_exists(db, room_id)

    start = data.get("start_date", contract.start_date)
    end = data.get("end_date", contract.end_date)
    if end <= start:
        raise bad_request("Invalid dates", "end_date must be after start_date")

    new_status = data.get("status", old_status)
    placement_changed = (
        room_id != old_room_id or start != contract.start_date or end != contract.end_date
    )
    if placement_changed or (new_status == _ACTIVE and old_status != _ACTIVE):
        await _ensure_room_available(db, room_id, start, end, exclude_id=contract.id)

    if tenant_ids is not None:
        primary = await _validate_tenants(db, tenant_ids, primary_id)
    elif primary_id is not None:
        current = [link.tenant_id for link in contract.tenant_links]
        primary = await _validate_tenants(db, current, primary_id)
        tenant_ids = current

    _stamp_termination(contract, old_status, new_status)
    for field, value in data.items():
        setattr(contract, field, value)
    if tenant_ids is not None:
        await _replace_tenants(db, contract, tenant_ids, primary)
    await db.flush()

    if room_id != old_room_id:
        if old_status == _ACTIVE:
            await release_room(db, old_room_id, contract.id)
        await apply_transition(db, room_id, contract.id, None, new_status)
    else:
        await apply_transition(db, room_id, contract.id, old_status, new_status)

    logger.info("Contract %s updated by %s", contract.contract_number, user.username)
    return {"message": "Contract updated successfully", "data": await _load_contract(db, contract.id)}


# ─── Lifecycle ──────────────────────────────────────────────────────────────

@router.patch("/{contract_id}/status", response_model=Envelope[ContractResponse])
async def update_contract_status(
    contract_id: uuid.UUID,
    payload: ContractStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contract = await _load_contract(db, contract_id)
    old_status = contract.status
    await _change_status(db, contract, payload.status.value)
    logger.info(
        "Contract %s status %s -> %s by %s",
        contract.contract_number, old_status, payload.status.value, user.username,
    )
    return {"message": "Contract status updated successfully", "data": await _load_contract(db, contract.id)}


@router.post("/{contract_id}/checkin", response_model=Envelope[ContractResponse])
async def check_in(
    contract_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contract = await _load_contract(db, contract_id)
    if contract.status == _ACTIVE:
        raise conflict("Contract already active", f"Contract {contract.contract_number} is already checked in")
    if contract.end_date < date.today():
        raise bad_request("Contract expired", "Cannot check in to a contract whose end date has passed")

    await _change_status(db, contract, _ACTIVE)
    logger.info("Contract %s checked in by %s", contract.contract_number, user.username)
    return {"message": "Checked in successfully", "data": await _load_contract(db, contract.id)}


@router.post("/{contract_id}/checkout", response_model=Envelope[ContractResponse])
async def check_out(
    contract_id: uuid.UUID,
    payload: CheckoutRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contract = await _load_contract(db, contract_id)
    if contract.status != _ACTIVE:
        raise conflict("Contract not active", f"Contract {contract.contract_number} is {contract.status}")
    unsettled = await _unsettled_bill_count(db, contract.id)
    if unsettled:
        raise conflict(
            "Unpaid bills",
            f"Contract has {unsettled} unpaid bill(s); settle them before checking out",
        )

    reason = payload.reason if payload else None
    if reason:
        note = f"Checkout {date.today().isoformat()}: {reason}"
        contract.notes = f"{contract.notes}\n{note}" if contract.notes else note
    await _change_status(db, contract, _TERMINATED)
    logger.info("Contract %s checked out by %s", contract.contract_number, user.username)
    return {"message": "Checked out successfully", "data": await _load_contract(db, contract.id)}


@router.delete("/{contract_id}", response_model=MessageResponse)
async def delete_contract(
    contract_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contract = await _load_contract(db, contract_id)
    if await _unsettled_bill_count(db, contract.id):
        raise conflict("Cannot delete contract", "Contract has unpaid bills")
    if contract.status == _ACTIVE:
        raise conflict("Cannot delete active contract", "Terminate or check out the contract first")

    number, room_id = contract.contract_number, contract.room_id
    await db.execute(delete(ContractTenant).where(ContractTenant.contract_id == contract.id))
    await db.execute(delete(Bill).where(Bill.contract_id == contract.id))
    await db.execute(delete(Contract).where(Contract.id == contract.id))
    await release_room(db, room_id, contract_id)
    logger.info("Contract %s deleted by %s", number, user.username)
    return {"message": "Contract deleted successfully"}
