"""Monthly bill generation.

For a billing period every ACTIVE contract without a bill gets one:
rent from the room's base price, utilities from the difference between this
period's and the previous period's meter readings, flat service fees from the
pricing settings. Each contract is written inside its own savepoint so one
failure is reported back instead of sinking the whole batch.
"""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.config import settings
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract
from roomrent.models.enums import BillStatus, ContractStatus
from roomrent.models.room import MeterReading
from roomrent.schemas.setting import PricingSettings
from roomrent.services.periods import bill_due_date, previous_period
from roomrent.services.rules import bill_total, consumption

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


@dataclass
class GenerationResult:
    bills: list[Bill] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)


def compute_amounts(
    base_price: Decimal,
    current: MeterReading | None,
    previous: MeterReading | None,
    pricing: PricingSettings,
) -> dict[str, Decimal]:
    electric_used = consumption(
        current.electric_reading if current else None,
        previous.electric_reading if previous else None,
    )
    water_used = consumption(
        current.water_reading if current else None,
        previous.water_reading if previous else None,
    )
    amounts = {
        "rent_amount": Decimal(base_price).quantize(_CENT),
        "electric_amount": (electric_used * pricing.electricity_rate).quantize(_CENT),
        "water_amount": (water_used * pricing.water_rate).quantize(_CENT),
        "service_amount": (pricing.internet_fee + pricing.cleaning_fee).quantize(_CENT),
    }
    amounts["total_amount"] = bill_total(
        amounts["rent_amount"],
        amounts["electric_amount"],
        amounts["water_amount"],
        amounts["service_amount"],
    )
    return amounts


async def active_contracts_for_period(
    db: AsyncSession, month: int, year: int
) -> tuple[list[Contract], list[Contract]]:
    """Return (all ACTIVE contracts, the subset still missing a bill for the period)."""
    result = await db.execute(
        select(Contract)
        .options(selectinload(Contract.room))
        .where(Contract.status == ContractStatus.ACTIVE.value)
        .order_by(Contract.contract_number)
    )
    active = list(result.scalars().all())
    if not active:
        return [], []

    billed = set(
        (
            await db.execute(
                select(Bill.contract_id).where(
                    Bill.contract_id.in_([c.id for c in active]),
                    Bill.month == month,
                    Bill.year == year,
                )
            )
        ).scalars().all()
    )
    return active, [c for c in active if c.id not in billed]


async def _readings_by_room(
    db: AsyncSession, room_ids: set[uuid.UUID], month: int, year: int
) -> dict[tuple[uuid.UUID, int, int], MeterReading]:
    prev_month, prev_year = previous_period(month, year)
    result = await db.execute(
        select(MeterReading).where(
            MeterReading.room_id.in_(room_ids),
            or_(
                and_(MeterReading.month == month, MeterReading.year == year),
                and_(MeterReading.month == prev_month, MeterReading.year == prev_year),
            ),
        )
    )
    return {(r.room_id, r.month, r.year): r for r in result.scalars().all()}


async def generate_bills(
    db: AsyncSession,
    contracts: list[Contract],
    month: int,
    year: int,
    pricing: PricingSettings,
) -> GenerationResult:
    """Create one UNPAID bill per contract. ``contracts`` must have ``room`` loaded."""
    outcome = GenerationResult()
    if not contracts:
        return outcome

    prev_month, prev_year = previous_period(month, year)
    readings = await _readings_by_room(db, {c.room_id for c in contracts}, month, year)
    due_date = bill_due_date(month, year, settings.bill_due_day)

    for contract in contracts:
        amounts = compute_amounts(
            contract.room.base_price,
            readings.get((contract.room_id, month, year)),
            readings.get((contract.room_id, prev_month, prev_year)),
            pricing,
        )
        bill = Bill(
            contract_id=contract.id,
            room_id=contract.room_id,
            month=month,
            year=year,
            due_date=due_date,
            status=BillStatus.UNPAID.value,
            **amounts,
        )
        try:
            async with db.begin_nested():
                db.add(bill)
        except SQLAlchemyError as exc:
            logger.warning(
                "Bill generation failed for contract %s (%d/%d): %s",
                contract.contract_number, month, year, exc,
            )
            outcome.failures.append({
                "contract_id": str(contract.id),
                "contract_number": contract.contract_number,
                "room_number": contract.room.number,
                "error": type(exc).__name__,
            })
        else:
            outcome.bills.append(bill)

    logger.info(
        "Generated %d bills for %02d/%d (%d failed)",
        len(outcome.bills), month, year, len(outcome.failures),
    )
    return outcome
