import logging
import uuid
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.core.errors import ApiError, bad_request, conflict, not_found
from roomrent.core.pagination import paginate
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract
from roomrent.models.enums import BillStatus, ContractStatus
from roomrent.models.room import Room
from roomrent.models.user import User
from roomrent.schemas.bill import (
    BillCreate,
    BillGenerate,
    BillPay,
    BillResponse,
    BillSummary,
    BillUpdate,
)
from roomrent.schemas.common import Envelope, MessageResponse, Page
from roomrent.services import billing
from roomrent.services.rules import bill_total, bill_total_matches
from roomrent.services.settings import get_pricing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bills", tags=["bills"])

_AMOUNT_FIELDS = ("rent_amount", "electric_amount", "water_amount", "service_amount")
_SORT_COLUMNS = {
    "created_at": Bill.created_at,
    "month": Bill.month,
    "year": Bill.year,
    "total_amount": Bill.total_amount,
    "due_date": Bill.due_date,
    "paid_date": Bill.paid_date,
}


def _bill_options():
    return selectinload(Bill.room), selectinload(Bill.contract)


async def _load_bill(db: AsyncSession, bill_id: uuid.UUID) -> Bill:
    result = await db.execute(
        select(Bill)
        .options(*_bill_options())
        .where(Bill.id == bill_id)
        .execution_options(populate_existing=True)
    )
    bill = result.scalar_one_or_none()
    if not bill:
        raise not_found("Bill")
    return bill


def _invalid_total(expected, supplied) -> ApiError:
    return bad_request(
        "Invalid total amount",
        f"Total amount {supplied} does not match the sum of its parts ({expected})",
    )


# ─── List / detail ──────────────────────────────────────────────────────────

@router.get("", response_model=Page[BillResponse])
async def list_bills(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status: BillStatus | None = None,
    contract_id: uuid.UUID | None = None,
    room_id: uuid.UUID | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2020, le=2100),
    search: str | None = Query(default=None, max_length=100),
    sort_by: Literal["created_at", "month", "year", "total_amount", "due_date", "paid_date"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Bill)
    if status:
        stmt = stmt.where(Bill.status == status.value)
    if contract_id:
        stmt = stmt.where(Bill.contract_id == contract_id)
    if room_id:
        stmt = stmt.where(Bill.room_id == room_id)
    if month:
        stmt = stmt.where(Bill.month == month)
    if year:
        stmt = stmt.where(Bill.year == year)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Bill.room_id.in_(select(Room.id).where(Room.number.ilike(pattern))),
                Bill.contract_id.in_(
                    select(Contract.id).where(Contract.contract_number.ilike(pattern))
                ),
            )
        )
    column = _SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.asc() if sort_order == "asc" else column.desc())

    bills, pagination = await paginate(db, stmt, page, limit, *_bill_options())
    return {"data": bills, "pagination": pagination}


@router.get("/{bill_id}", response_model=Envelope[BillResponse])
async def get_bill(
    bill_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await _load_bill(db, bill_id)}


# ─── Generation ─────────────────────────────────────────────────────────────

@router.post("/generate", status_code=201)
async def generate_bills(
    payload: BillGenerate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create the period's bill for every ACTIVE contract that has none yet."""
    active, missing = await billing.active_contracts_for_period(db, payload.month, payload.year)
    if not active:
        raise ApiError(404, "No active contracts", "There are no ACTIVE contracts to bill")
    if not missing:
        raise conflict(
            "Bills already exist",
            f"Every active contract already has a bill for {payload.month:02d}/{payload.year}",
        )

    pricing = await get_pricing(db)
    outcome = await billing.generate_bills(db, missing, payload.month, payload.year, pricing)
    logger.info(
        "Bill generation %02d/%d by %s: %d created, %d failed",
        payload.month, payload.year, user.username, len(outcome.bills), len(outcome.failures),
    )
    return {
        "message": f"Generated {len(outcome.bills)} bill(s) for {payload.month:02d}/{payload.year}",
        "data": {
            "generated": len(outcome.bills),
            "errors": len(outcome.failures),
            "bills": [BillSummary.model_validate(b) for b in outcome.bills],
            "failures": outcome.failures,
        },
    }


# ─── Writes ─────────────────────────────────────────────────────────────────

@router.post("", response_model=Envelope[BillResponse], status_code=201)
async def create_bill(
    payload: BillCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contract = await db.get(Contract, payload.contract_id)
    if not contract:
        raise not_found("Contract")
    if contract.status != ContractStatus.ACTIVE.value:
        raise bad_request(
            "Invalid contract status",
            f"Bills can only be created for ACTIVE contracts (contract is {contract.status})",
        )
    if contract.room_id != payload.room_id:
        raise bad_request("Room mismatch", "room_id does not match the contract's room")

    existing = await db.execute(
        select(Bill.id).where(
            Bill.contract_id == payload.contract_id,
            Bill.month == payload.month,
            Bill.year == payload.year,
        )
    )
    if existing.first():
        raise conflict(
            "Bill already exists",
            f"Contract {contract.contract_number} already has a bill for {payload.month:02d}/{payload.year}",
        )

    parts = [getattr(payload, f) for f in _AMOUNT_FIELDS]
    expected = bill_total(*parts)
    if payload.total_amount is not None and not bill_total_matches(*parts, payload.total_amount):
        raise _invalid_total(expected, payload.total_amount)

    bill = Bill(
        **payload.model_dump(exclude={"total_amount"}),
        total_amount=payload.total_amount if payload.total_amount is not None else expected,
        status=BillStatus.UNPAID.value,
    )
    db.add(bill)
    await db.flush()
    logger.info(
        "Bill %02d/%d for contract %s created by %s",
        bill.month, bill.year, contract.contract_number, user.username,
    )
    return {"message": "Bill created successfully", "data": await _load_bill(db, bill.id)}


@router.put("/{bill_id}", response_model=Envelope[BillResponse])
async def update_bill(
    bill_id: uuid.UUID,
    payload: BillUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bill = await _load_bill(db, bill_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    supplied_total = data.pop("total_amount", None)
    if "status" in data:
        data["status"] = data["status"].value

    amounts_changed = any(
        f in data and data[f] != getattr(bill, f) for f in _AMOUNT_FIELDS
    ) or (supplied_total is not None and supplied_total != bill.total_amount)
    if bill.status == BillStatus.PAID.value and amounts_changed:
        raise bad_request("Cannot modify paid bill", "Amounts of a paid bill are final")

    parts = [data.get(f, getattr(bill, f)) for f in _AMOUNT_FIELDS]
    expected = bill_total(*parts)
    if supplied_total is not None and not bill_total_matches(*parts, supplied_total):
        raise _invalid_total(expected, supplied_total)

    for field, value in data.items():
        setattr(bill, field, value)
    bill.total_amount = expected
    if bill.status == BillStatus.PAID.value and bill.paid_date is None:
        bill.paid_date = date.today()
    elif bill.status != BillStatus.PAID.value and "paid_date" not in data:
        bill.paid_date = None
    await db.flush()
    logger.info("Bill %s updated by %s", bill.id, user.username)
    return {"message": "Bill updated successfully", "data": await _load_bill(db, bill.id)}


@router.post("/{bill_id}/pay", response_model=Envelope[BillResponse])
async def pay_bill(
    bill_id: uuid.UUID,
    payload: BillPay | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bill = await _load_bill(db, bill_id)
    if bill.status == BillStatus.PAID.value:
        raise conflict("Bill already paid", f"Bill was paid on {bill.paid_date}")

    payload = payload or BillPay()
    bill.status = BillStatus.PAID.value
    bill.paid_date = payload.paid_date or date.today()
    if payload.notes:
        bill.notes = payload.notes
    await db.flush()
    logger.info(
        "Bill %02d/%d of room %s paid (recorded by %s)",
        bill.month, bill.year, bill.room.number, user.username,
    )
    return {"message": "Bill marked as paid", "data": await _load_bill(db, bill.id)}


@router.delete("/{bill_id}", response_model=MessageResponse)
async def delete_bill(
    bill_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bill = await db.get(Bill, bill_id)
    if not bill:
        raise not_found("Bill")
    if bill.status == BillStatus.PAID.value:
        raise conflict("Cannot delete paid bill", "Paid bills are kept for the revenue history")

    await db.execute(delete(Bill).where(Bill.id == bill_id))
    logger.info("Bill %s deleted by %s", bill_id, user.username)
    return {"message": "Bill deleted successfully"}
