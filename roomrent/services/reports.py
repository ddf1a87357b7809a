"""Report aggregation over a date range, bucketed by billing month.

Every report is a list of per-month rows plus a summary dict. Bills are
bucketed by their billing period (``month``/``year``), not by creation time.
Occupancy is reconstructed from contract date ranges so past months reflect
who actually held a room then.
"""

import csv
import io
import logging
import uuid
from collections import defaultdict
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.models.bill import Bill
from roomrent.models.contract import Contract, ContractTenant
from roomrent.models.enums import BillStatus, ContractStatus, RoomStatus
from roomrent.models.room import Room
from roomrent.services.periods import iter_months, month_bounds
from roomrent.services.rules import intervals_overlap, occupancy_rate

logger = logging.getLogger(__name__)

REPORT_TYPES = ("revenue", "occupancy", "bills")

CSV_COLUMNS = {
    "revenue": [
        "period", "paid_revenue", "pending_revenue", "total_revenue",
        "paid_bills", "unpaid_bills", "overdue_bills", "total_bills",
    ],
    "occupancy": [
        "period", "total_rooms", "occupied_rooms", "vacant_rooms",
        "maintenance_rooms", "reserved_rooms", "occupancy_rate",
    ],
    "bills": [
        "period", "total_bills", "paid_bills", "unpaid_bills", "overdue_bills",
        "total_amount", "paid_amount", "unpaid_amount", "average_amount",
    ],
}


def _money(value: Decimal | None) -> float:
    return float(value or 0)


def _period_key(month: int, year: int) -> str:
    return f"{year}-{month:02d}"


def _is_overdue(bill_status: str, due_date: date, today: date) -> bool:
    if bill_status == BillStatus.OVERDUE:
        return True
    return bill_status == BillStatus.UNPAID and due_date < today


async def _bills_in_range(
    db: AsyncSession, start: date, end: date, room_ids: list[uuid.UUID] | None
) -> dict[tuple[int, int], list[Bill]]:
    periods = set(iter_months(start, end))
    stmt = select(Bill).where(Bill.year >= start.year, Bill.year <= end.year)
    if room_ids:
        stmt = stmt.where(Bill.room_id.in_(room_ids))
    grouped: dict[tuple[int, int], list[Bill]] = defaultdict(list)
    for bill in (await db.execute(stmt)).scalars().all():
        if (bill.month, bill.year) in periods:
            grouped[(bill.month, bill.year)].append(bill)
    return grouped


# ─── Revenue ─────────────────────────────────────────────────────────────────

async def revenue_report(
    db: AsyncSession,
    start: date,
    end: date,
    room_ids: list[uuid.UUID] | None = None,
    today: date | None = None,
) -> tuple[list[dict], dict]:
    today = today or date.today()
    grouped = await _bills_in_range(db, start, end, room_ids)

    rows = []
    for month, year in iter_months(start, end):
        bills = grouped.get((month, year), [])
        paid = [b for b in bills if b.status == BillStatus.PAID]
        pending = [b for b in bills if b.status != BillStatus.PAID]
        paid_revenue = sum((b.total_amount for b in paid), Decimal(0))
        pending_revenue = sum((b.total_amount for b in pending), Decimal(0))
        rows.append({
            "period": _period_key(month, year),
            "month": month,
            "year": year,
            "paid_revenue": _money(paid_revenue),
            "pending_revenue": _money(pending_revenue),
            "total_revenue": _money(paid_revenue + pending_revenue),
            "paid_bills": len(paid),
            "unpaid_bills": len(pending),
            "overdue_bills": sum(1 for b in bills if _is_overdue(b.status, b.due_date, today)),
            "total_bills": len(bills),
        })

    summary = {
        "total_paid_revenue": round(sum(r["paid_revenue"] for r in rows), 2),
        "total_pending_revenue": round(sum(r["pending_revenue"] for r in rows), 2),
        "total_revenue": round(sum(r["total_revenue"] for r in rows), 2),
        "total_bills": sum(r["total_bills"] for r in rows),
        "overdue_bills": sum(r["overdue_bills"] for r in rows),
    }
    return rows, summary


# ─── Occupancy ───────────────────────────────────────────────────────────────

def _contract_span(contract: Contract) -> tuple[date, date]:
    """Dates a contract actually held its room; terminated ones stop at termination."""
    end = contract.end_date
    if contract.status == ContractStatus.TERMINATED and contract.terminated_at is not None:
        end = min(end, contract.terminated_at)
    return contract.start_date, end


async def occupancy_report(
    db: AsyncSession,
    start: date,
    end: date,
    room_ids: list[uuid.UUID] | None = None,
) -> tuple[list[dict], dict]:
    room_stmt = select(Room.id, Room.status)
    contract_stmt = select(Contract)
    if room_ids:
        room_stmt = room_stmt.where(Room.id.in_(room_ids))
        contract_stmt = contract_stmt.where(Contract.room_id.in_(room_ids))
    rooms = (await db.execute(room_stmt)).all()
    contracts = (await db.execute(contract_stmt)).scalars().all()

    total = len(rooms)
    maintenance = sum(1 for r in rooms if r.status == RoomStatus.MAINTENANCE)
    reserved = sum(1 for r in rooms if r.status == RoomStatus.RESERVED)

    rows = []
    for month, year in iter_months(start, end):
        first, last = month_bounds(month, year)
        occupied_ids = set()
        for contract in contracts:
            c_start, c_end = _contract_span(contract)
            if c_end < c_start:
                continue
            if intervals_overlap(first, last, c_start, c_end):
                occupied_ids.add(contract.room_id)
        occupied = len(occupied_ids)
        rows.append({
            "period": _period_key(month, year),
            "month": month,
            "year": year,
            "total_rooms": total,
            "occupied_rooms": occupied,
            "vacant_rooms": max(0, total - occupied),
            "maintenance_rooms": maintenance,
            "reserved_rooms": reserved,
            "occupancy_rate": occupancy_rate(occupied, total),
        })

    rates = [r["occupancy_rate"] for r in rows]
    summary = {
        "total_rooms": total,
        "average_occupancy_rate": round(sum(rates) / len(rates), 2) if rates else 0.0,
        "peak_occupancy_rate": max(rates) if rates else 0.0,
        "lowest_occupancy_rate": min(rates) if rates else 0.0,
    }
    return rows, summary


# ─── Bills ───────────────────────────────────────────────────────────────────

async def bills_report(
    db: AsyncSession,
    start: date,
    end: date,
    room_ids: list[uuid.UUID] | None = None,
    today: date | None = None,
) -> tuple[list[dict], dict]:
    today = today or date.today()
    grouped = await _bills_in_range(db, start, end, room_ids)

    rows = []
    for month, year in iter_months(start, end):
        bills = grouped.get((month, year), [])
        total_amount = sum((b.total_amount for b in bills), Decimal(0))
        paid_amount = sum((b.total_amount for b in bills if b.status == BillStatus.PAID), Decimal(0))
        rows.append({
            "period": _period_key(month, year),
            "month": month,
            "year": year,
            "total_bills": len(bills),
            "paid_bills": sum(1 for b in bills if b.status == BillStatus.PAID),
            "unpaid_bills": sum(1 for b in bills if b.status == BillStatus.UNPAID),
            "overdue_bills": sum(1 for b in bills if _is_overdue(b.status, b.due_date, today)),
            "total_amount": _money(total_amount),
            "paid_amount": _money(paid_amount),
            "unpaid_amount": _money(total_amount - paid_amount),
            "average_amount": round(_money(total_amount) / len(bills), 2) if bills else 0.0,
        })

    total_bills = sum(r["total_bills"] for r in rows)
    paid_bills = sum(r["paid_bills"] for r in rows)
    summary = {
        "total_bills": total_bills,
        "paid_bills": paid_bills,
        "unpaid_bills": sum(r["unpaid_bills"] for r in rows),
        "overdue_bills": sum(r["overdue_bills"] for r in rows),
        "total_amount": round(sum(r["total_amount"] for r in rows), 2),
        "paid_amount": round(sum(r["paid_amount"] for r in rows), 2),
        "collection_rate": round(paid_bills / total_bills * 100, 2) if total_bills else 0.0,
    }
    return rows, summary


# ─── Summary ─────────────────────────────────────────────────────────────────

async def summary_report(
    db: AsyncSession,
    start: date,
    end: date,
    room_ids: list[uuid.UUID] | None = None,
) -> dict:
    range_start = datetime.combine(start, time.min, tzinfo=timezone.utc)
    range_end = datetime.combine(end, time.max, tzinfo=timezone.utc)

    bill_filters = [Bill.created_at >= range_start, Bill.created_at <= range_end]
    contract_filters = [Contract.created_at >= range_start, Contract.created_at <= range_end]
    active_filters = [Contract.status == ContractStatus.ACTIVE.value]
    if room_ids:
        bill_filters.append(Bill.room_id.in_(room_ids))
        contract_filters.append(Contract.room_id.in_(room_ids))
        active_filters.append(Contract.room_id.in_(room_ids))

    total_revenue = await db.scalar(
        select(func.sum(Bill.total_amount)).where(
            *bill_filters, Bill.status == BillStatus.PAID.value
        )
    )
    total_bills = await db.scalar(select(func.count(Bill.id)).where(*bill_filters))
    total_tenants = await db.scalar(
        select(func.count(func.distinct(ContractTenant.tenant_id)))
        .join(Contract, ContractTenant.contract_id == Contract.id)
        .where(*active_filters)
    )
    total_contracts = await db.scalar(select(func.count(Contract.id)).where(*contract_filters))
    _, occupancy = await occupancy_report(db, start, end, room_ids)

    return {
        "total_revenue": _money(total_revenue),
        "total_bills": total_bills or 0,
        "average_occupancy": occupancy["average_occupancy_rate"],
        "total_tenants": total_tenants or 0,
        "total_contracts": total_contracts or 0,
        "period": {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "months": len(list(iter_months(start, end))),
        },
    }


# ─── Export ──────────────────────────────────────────────────────────────────

def rows_to_csv(report_type: str, rows: list[dict]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    columns = CSV_COLUMNS[report_type]
    writer.writerow(columns)
    for row in rows:
        writer.writerow([row[c] for c in columns])
    return output.getvalue()
