"""Dashboard aggregates: headline stats, monthly overview, revenue series, alerts."""

import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.config import settings
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract, ContractTenant
from roomrent.models.enums import BillStatus, ContractStatus, RoomStatus
from roomrent.models.room import Room
from roomrent.models.tenant import Tenant
from roomrent.services.periods import trailing_months
from roomrent.services.rules import occupancy_rate

logger = logging.getLogger(__name__)

_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _money(value: Decimal | None) -> float:
    return float(value or 0)


def _overdue_clause(today: date):
    return or_(
        Bill.status == BillStatus.OVERDUE.value,
        (Bill.status == BillStatus.UNPAID.value) & (Bill.due_date < today),
    )


async def room_counts(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Room.status, func.count(Room.id)).group_by(Room.status))
    counts = {status.value: 0 for status in RoomStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


# ─── Stats ───────────────────────────────────────────────────────────────────

async def stats(db: AsyncSession) -> dict:
    counts = await room_counts(db)
    total_rooms = sum(counts.values())
    occupied = counts[RoomStatus.OCCUPIED.value]
    monthly_revenue = await db.scalar(
        select(func.sum(Room.base_price)).where(Room.status == RoomStatus.OCCUPIED.value)
    )
    return {
        "total_rooms": total_rooms,
        "occupied_rooms": occupied,
        "available_rooms": counts[RoomStatus.AVAILABLE.value],
        "total_tenants": await db.scalar(select(func.count(Tenant.id))) or 0,
        "occupancy_rate": round(occupancy_rate(occupied, total_rooms)),
        "monthly_revenue": _money(monthly_revenue),
    }


# ─── Overview ────────────────────────────────────────────────────────────────

async def overview(db: AsyncSession, month: int, year: int, today: date | None = None) -> dict:
    today = today or date.today()
    counts = await room_counts(db)
    total_rooms = sum(counts.values())

    period_sums = dict(
        (
            await db.execute(
                select(Bill.status, func.sum(Bill.total_amount))
                .where(Bill.month == month, Bill.year == year)
                .group_by(Bill.status)
            )
        ).all()
    )
    active_tenants = await db.scalar(
        select(func.count(func.distinct(ContractTenant.tenant_id)))
        .join(Contract, ContractTenant.contract_id == Contract.id)
        .where(Contract.status == ContractStatus.ACTIVE.value)
    )
    horizon = today + timedelta(days=settings.contract_expiry_warning_days)

    return {
        "rooms": {
            "total": total_rooms,
            "occupied": counts[RoomStatus.OCCUPIED.value],
            "available": counts[RoomStatus.AVAILABLE.value],
            "maintenance": counts[RoomStatus.MAINTENANCE.value],
            "reserved": counts[RoomStatus.RESERVED.value],
            "occupancy_rate": occupancy_rate(counts[RoomStatus.OCCUPIED.value], total_rooms),
        },
        "tenants": {
            "total": await db.scalar(select(func.count(Tenant.id))) or 0,
            "active": active_tenants or 0,
        },
        "revenue": {
            "monthly": _money(period_sums.get(BillStatus.PAID.value)),
            "pending": _money(period_sums.get(BillStatus.UNPAID.value))
            + _money(period_sums.get(BillStatus.OVERDUE.value)),
            "period": {"month": month, "year": year},
        },
        "alerts": {
            "overdue_bills": await db.scalar(
                select(func.count(Bill.id)).where(_overdue_clause(today))
            ) or 0,
            "unpaid_bills": await db.scalar(
                select(func.count(Bill.id)).where(Bill.status == BillStatus.UNPAID.value)
            ) or 0,
            "expiring_contracts": await db.scalar(
                select(func.count(Contract.id)).where(
                    Contract.status == ContractStatus.ACTIVE.value,
                    Contract.end_date >= today,
                    Contract.end_date <= horizon,
                )
            ) or 0,
        },
    }


# ─── Revenue series ──────────────────────────────────────────────────────────

async def revenue_series(db: AsyncSession, year: int, months: int, today: date | None = None) -> dict:
    """Paid vs pending revenue for the ``months`` periods ending in ``year``.

    The series ends at the current month for the current year and at
    December for any other year.
    """
    today = today or date.today()
    end_month = today.month if year == today.year else 12
    periods = trailing_months(end_month, year, months)
    start_month, start_year = periods[0]

    result = await db.execute(
        select(Bill.month, Bill.year, Bill.status, func.sum(Bill.total_amount))
        .where(Bill.year >= start_year, Bill.year <= year)
        .group_by(Bill.month, Bill.year, Bill.status)
    )
    sums: dict[tuple[int, int], dict[str, Decimal]] = {}
    for bill_month, bill_year, status, total in result.all():
        sums.setdefault((bill_month, bill_year), {})[status] = total

    revenue_data = []
    for month, period_year in periods:
        by_status = sums.get((month, period_year), {})
        paid = _money(by_status.get(BillStatus.PAID.value))
        pending = _money(by_status.get(BillStatus.UNPAID.value)) + _money(
            by_status.get(BillStatus.OVERDUE.value)
        )
        revenue_data.append({
            "month": month,
            "year": period_year,
            "paid_revenue": paid,
            "pending_revenue": pending,
            "total_revenue": paid + pending,
        })

    return {
        "revenue_data": revenue_data,
        "summary": {
            "total_paid_revenue": round(sum(r["paid_revenue"] for r in revenue_data), 2),
            "total_pending_revenue": round(sum(r["pending_revenue"] for r in revenue_data), 2),
            "total_revenue": round(sum(r["total_revenue"] for r in revenue_data), 2),
            "period": {
                "months": len(revenue_data),
                "start": {"month": start_month, "year": start_year},
                "end": {"month": end_month, "year": year},
            },
        },
    }


# ─── Notifications ───────────────────────────────────────────────────────────

async def notifications(db: AsyncSession, limit: int, today: date | None = None) -> dict:
    today = today or date.today()
    horizon = today + timedelta(days=settings.contract_expiry_warning_days)
    items: list[dict] = []

    overdue = await db.execute(
        select(Bill)
        .options(selectinload(Bill.room))
        .where(_overdue_clause(today))
        .order_by(Bill.due_date)
    )
    for bill in overdue.scalars().all():
        days_late = (today - bill.due_date).days
        items.append({
            "id": f"bill-{bill.id}",
            "type": "overdue_bill",
            "priority": "high",
            "title": f"Overdue bill for room {bill.room.number}",
            "message": (
                f"Bill {bill.month:02d}/{bill.year} of {_money(bill.total_amount):,.0f} "
                f"is {days_late} day(s) past due"
            ),
            "action_required": True,
            "related_id": str(bill.id),
        })

    expiring = await db.execute(
        select(Contract)
        .options(selectinload(Contract.room))
        .where(
            Contract.status == ContractStatus.ACTIVE.value,
            Contract.end_date >= today,
            Contract.end_date <= horizon,
        )
        .order_by(Contract.end_date)
    )
    for contract in expiring.scalars().all():
        days_left = (contract.end_date - today).days
        items.append({
            "id": f"contract-{contract.id}",
            "type": "contract_expiring",
            "priority": "medium",
            "title": f"Contract {contract.contract_number} is expiring",
            "message": f"Room {contract.room.number} contract ends in {days_left} day(s)",
            "action_required": True,
            "related_id": str(contract.id),
        })

    maintenance = await db.execute(
        select(Room).where(Room.status == RoomStatus.MAINTENANCE.value).order_by(Room.number)
    )
    for room in maintenance.scalars().all():
        items.append({
            "id": f"room-{room.id}",
            "type": "room_maintenance",
            "priority": "low",
            "title": f"Room {room.number} under maintenance",
            "message": f"Room {room.number} on floor {room.floor} is not available for rent",
            "action_required": False,
            "related_id": str(room.id),
        })

    items.sort(key=lambda n: _PRIORITY_ORDER[n["priority"]])

    by_type: dict[str, int] = {}
    by_priority = {p: 0 for p in _PRIORITY_ORDER}
    for item in items:
        by_type[item["type"]] = by_type.get(item["type"], 0) + 1
        by_priority[item["priority"]] += 1

    return {
        "notifications": items[:limit],
        "summary": {
            "total": len(items),
            "by_type": by_type,
            "by_priority": by_priority,
            "action_required": sum(1 for n in items if n["action_required"]),
        },
    }
