"""
Unit tests for the occupancy and billing rules. Pure functions, no DB.
"""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from roomrent.models.enums import ContractStatus, RoomStatus
from roomrent.services.rules import (
    bill_total,
    bill_total_matches,
    consumption,
    find_overlapping,
    intervals_overlap,
    manual_room_status_conflict,
    occupancy_rate,
    room_status_after_transition,
)


# ── intervals_overlap ────────────────────────────────────────────────────────

class TestIntervalsOverlap:
    def test_disjoint(self):
        assert not intervals_overlap(date(2024, 1, 1), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 28))

    def test_touching_end_day_counts(self):
        assert intervals_overlap(date(2024, 1, 1), date(2024, 1, 31), date(2024, 1, 31), date(2024, 3, 1))

    def test_starts_inside(self):
        assert intervals_overlap(date(2024, 1, 15), date(2024, 3, 1), date(2024, 1, 1), date(2024, 1, 31))

    def test_ends_inside(self):
        assert intervals_overlap(date(2023, 12, 1), date(2024, 1, 10), date(2024, 1, 1), date(2024, 1, 31))

    def test_contains_other(self):
        assert intervals_overlap(date(2023, 1, 1), date(2025, 1, 1), date(2024, 1, 1), date(2024, 1, 31))

    def test_open_ended_other(self):
        assert intervals_overlap(date(2030, 1, 1), date(2030, 2, 1), date(2024, 1, 1), None)

    def test_open_ended_before_start(self):
        assert not intervals_overlap(date(2023, 1, 1), date(2023, 6, 1), date(2024, 1, 1), None)

    def test_both_open_ended(self):
        assert intervals_overlap(date(2023, 1, 1), None, date(2030, 1, 1), None)


class TestFindOverlapping:
    def test_returns_first_clash(self):
        items = [
            SimpleNamespace(name="a", start_date=date(2024, 1, 1), end_date=date(2024, 3, 31)),
            SimpleNamespace(name="b", start_date=date(2024, 6, 1), end_date=date(2024, 12, 31)),
        ]
        hit = find_overlapping(date(2024, 7, 1), date(2024, 8, 1), items)
        assert hit.name == "b"

    def test_none_when_free(self):
        items = [SimpleNamespace(start_date=date(2024, 1, 1), end_date=date(2024, 3, 31))]
        assert find_overlapping(date(2024, 4, 1), date(2024, 5, 1), items) is None

    def test_custom_span(self):
        items = [("x", date(2024, 1, 1), date(2024, 1, 31))]
        hit = find_overlapping(date(2024, 1, 15), date(2024, 1, 20), items, span=lambda i: (i[1], i[2]))
        assert hit[0] == "x"


# ── room status ──────────────────────────────────────────────────────────────

class TestRoomStatusAfterTransition:
    def test_new_active_contract_occupies(self):
        assert room_status_after_transition(None, ContractStatus.ACTIVE.value, 0) == RoomStatus.OCCUPIED

    def test_new_inactive_contract_leaves_room(self):
        assert room_status_after_transition(None, ContractStatus.TERMINATED.value, 0) is None

    def test_last_active_contract_ending_releases(self):
        result = room_status_after_transition(ContractStatus.ACTIVE.value, ContractStatus.TERMINATED.value, 0)
        assert result == RoomStatus.AVAILABLE

    def test_other_active_contract_keeps_room(self):
        assert room_status_after_transition(ContractStatus.ACTIVE.value, ContractStatus.EXPIRED.value, 1) is None

    def test_reactivation_occupies(self):
        result = room_status_after_transition(ContractStatus.TERMINATED.value, ContractStatus.ACTIVE.value, 0)
        assert result == RoomStatus.OCCUPIED

    def test_inactive_to_inactive_is_noop(self):
        assert room_status_after_transition(ContractStatus.EXPIRED.value, ContractStatus.TERMINATED.value, 0) is None


class TestManualRoomStatusConflict:
    def test_occupied_without_contract(self):
        assert manual_room_status_conflict(RoomStatus.OCCUPIED.value, 0) is not None

    def test_available_with_contract(self):
        assert manual_room_status_conflict(RoomStatus.AVAILABLE.value, 2) is not None

    def test_maintenance_with_contract(self):
        assert manual_room_status_conflict(RoomStatus.MAINTENANCE.value, 1) is not None

    def test_consistent_values(self):
        assert manual_room_status_conflict(RoomStatus.OCCUPIED.value, 1) is None
        assert manual_room_status_conflict(RoomStatus.MAINTENANCE.value, 0) is None
        assert manual_room_status_conflict(RoomStatus.RESERVED.value, 0) is None


# ── bills ────────────────────────────────────────────────────────────────────

class TestBillTotal:
    def test_sum(self):
        assert bill_total(Decimal("100"), Decimal("20.50"), Decimal("5"), Decimal("1.25")) == Decimal("126.75")

    def test_exact_match(self):
        assert bill_total_matches(Decimal("100"), Decimal("20"), Decimal("5"), Decimal("0"), Decimal("125"))

    def test_within_one_cent(self):
        assert bill_total_matches(Decimal("100"), Decimal("20"), Decimal("5"), Decimal("0"), Decimal("125.01"))

    def test_beyond_one_cent(self):
        assert not bill_total_matches(Decimal("100"), Decimal("20"), Decimal("5"), Decimal("0"), Decimal("125.02"))


class TestConsumption:
    def test_difference(self):
        assert consumption(Decimal("150"), Decimal("100")) == Decimal("50")

    def test_missing_current(self):
        assert consumption(None, Decimal("100")) == 0

    def test_missing_previous(self):
        assert consumption(Decimal("100"), None) == 0

    def test_meter_reset_clamped(self):
        assert consumption(Decimal("10"), Decimal("9000")) == 0


class TestOccupancyRate:
    def test_empty_building(self):
        assert occupancy_rate(0, 0) == 0.0

    def test_rounding(self):
        assert occupancy_rate(1, 3) == 33.33

    def test_full(self):
        assert occupancy_rate(4, 4) == 100.0
