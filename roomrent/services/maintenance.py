"""Daily housekeeping run by Celery beat.

    mark_overdue_bills  – UNPAID bills past their due date become OVERDUE
    expire_contracts    – ACTIVE contracts past their end date become EXPIRED,
                          and their rooms are released when nothing else is active

Both tasks use a synchronous session; the ``*_in_session`` helpers hold the
logic so it can be driven with any session.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.orm import Session

from roomrent.core.config import settings
from roomrent.models import tenant as _tenant_model  # noqa: F401  registers Tenant for relationships
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract
from roomrent.models.enums import BillStatus, ContractStatus, RoomStatus
from roomrent.models.room import Room
from roomrent.services.rules import room_status_after_transition
from roomrent.worker import celery_app

logger = logging.getLogger(__name__)

_engine = create_engine(settings.database_url_sync, pool_pre_ping=True)


# ─── Core logic (sync) ──────────────────────────────────────────────────────────

def mark_overdue_in_session(db: Session, today: date) -> int:
    result = db.execute(
        update(Bill)
        .where(Bill.status == BillStatus.UNPAID.value, Bill.due_date < today)
        .values(status=BillStatus.OVERDUE.value)
    )
    db.commit()
    return result.rowcount or 0


def _active_contract_count(db: Session, room_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count(Contract.id)).where(
            Contract.room_id == room_id,
            Contract.status == ContractStatus.ACTIVE.value,
        )
    ).scalar_one()


def expire_contracts_in_session(db: Session, today: date) -> tuple[int, int]:
    """Returns (contracts expired, rooms released)."""
    contracts = db.execute(
        select(Contract).where(
            Contract.status == ContractStatus.ACTIVE.value,
            Contract.end_date < today,
        )
    ).scalars().all()

    for contract in contracts:
        contract.status = ContractStatus.EXPIRED.value
    db.flush()

    released = 0
    for room_id in {c.room_id for c in contracts}:
        new_status = room_status_after_transition(
            ContractStatus.ACTIVE.value,
            ContractStatus.EXPIRED.value,
            _active_contract_count(db, room_id),
        )
        if new_status is None:
            continue
        room = db.get(Room, room_id)
        if room is not None and room.status == RoomStatus.OCCUPIED:
            room.status = new_status.value
            released += 1

    db.commit()
    return len(contracts), released


# ─── Celery tasks ───────────────────────────────────────────────────────────────

@celery_app.task(name="roomrent.services.maintenance.mark_overdue_bills")
def mark_overdue_bills():
    """Flag unpaid bills whose due date has passed (runs at 01:00 UTC)."""
    with Session(_engine) as db:
        count = mark_overdue_in_session(db, date.today())
    logger.info("Marked %d bills as OVERDUE", count)
    return count


@celery_app.task(name="roomrent.services.maintenance.expire_contracts")
def expire_contracts():
    """Expire contracts past their end date (runs at 01:10 UTC)."""
    with Session(_engine) as db:
        expired, released = expire_contracts_in_session(db, date.today())
    logger.info("Expired %d contracts, released %d rooms", expired, released)
    return {"expired": expired, "released": released}
