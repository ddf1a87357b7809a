"""Occupancy and billing rules as plain functions.

Nothing in here touches the database: callers load the rows they need and
pass plain dates, statuses and amounts in, which keeps every rule testable
on its own.
"""

from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal
from typing import TypeVar

from roomrent.models.enums import ContractStatus, RoomStatus

T = TypeVar("T")

BILL_TOTAL_TOLERANCE = Decimal("0.01")


# ─── Date intervals ──────────────────────────────────────────────────────────

def intervals_overlap(
    a_start: date,
    a_end: date | None,
    b_start: date,
    b_end: date | None,
) -> bool:
    """True when ``[a_start, a_end]`` and ``[b_start, b_end]`` share a day.

    Bounds are inclusive and a ``None`` end is open-ended. This single test
    covers a starting inside b, a ending inside b, and b sitting inside a.
    """
    a_before_b_ends = b_end is None or a_start <= b_end
    b_before_a_ends = a_end is None or b_start <= a_end
    return a_before_b_ends and b_before_a_ends


def find_overlapping(
    start: date,
    end: date | None,
    items: Iterable[T],
    span: Callable[[T], tuple[date, date | None]] = lambda i: (i.start_date, i.end_date),
) -> T | None:
    """Return the first item whose span overlaps ``[start, end]``."""
    for item in items:
        other_start, other_end = span(item)
        if intervals_overlap(start, end, other_start, other_end):
            return item
    return None


# ─── Room status ─────────────────────────────────────────────────────────────

def room_status_after_transition(
    old_status: str | None,
    new_status: str,
    other_active_contracts: int,
) -> RoomStatus | None:
    """Room status implied by a contract moving from ``old_status`` to ``new_status``.

    ``old_status`` is None for a freshly created contract. Returns None when
    the room should be left alone.
    """
    if new_status == ContractStatus.ACTIVE:
        return RoomStatus.OCCUPIED
    if old_status == ContractStatus.ACTIVE and other_active_contracts == 0:
        return RoomStatus.AVAILABLE
    return None


def manual_room_status_conflict(new_status: str, active_contracts: int) -> str | None:
    """Why a manually requested room status would contradict its contracts, if it does."""
    if new_status == RoomStatus.OCCUPIED and active_contracts == 0:
        return "Room cannot be marked OCCUPIED without an active contract"
    if new_status != RoomStatus.OCCUPIED and active_contracts > 0:
        return f"Room has {active_contracts} active contract(s) and must stay OCCUPIED"
    return None


# ─── Bills ───────────────────────────────────────────────────────────────────

def bill_total(
    rent: Decimal,
    electric: Decimal,
    water: Decimal,
    service: Decimal,
) -> Decimal:
    return Decimal(rent) + Decimal(electric) + Decimal(water) + Decimal(service)


def bill_total_matches(
    rent: Decimal,
    electric: Decimal,
    water: Decimal,
    service: Decimal,
    total: Decimal,
) -> bool:
    return abs(bill_total(rent, electric, water, service) - Decimal(total)) <= BILL_TOTAL_TOLERANCE


def consumption(current: Decimal | None, previous: Decimal | None) -> Decimal:
    """Units used between two cumulative readings; 0 if either is missing or the meter went backwards."""
    if current is None or previous is None:
        return Decimal(0)
    return max(Decimal(0), Decimal(current) - Decimal(previous))


def occupancy_rate(occupied: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(occupied / total * 100, 2)
