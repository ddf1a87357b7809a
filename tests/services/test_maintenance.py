"""
Daily maintenance jobs, driven through their ``*_in_session`` helpers on a
synchronous in-memory SQLite database.
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from roomrent.core.database import Base
from roomrent.models.bill import Bill
from roomrent.models.contract import Contract
from roomrent.models.room import Room
from roomrent.services.maintenance import expire_contracts_in_session, mark_overdue_in_session

TODAY = date(2024, 6, 15)


@pytest.fixture
def sync_db():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


def _room(db, number, status="OCCUPIED"):
    room = Room(number=number, floor=1, area=Decimal("18"), type="single", base_price=Decimal("1500000"), status=status)
    db.add(room)
    db.flush()
    return room


def _contract(db, room, number, end, status="ACTIVE"):
    contract = Contract(
        contract_number=number,
        room_id=room.id,
        start_date=date(2023, 1, 1),
        end_date=end,
        deposit=Decimal("1500000"),
        status=status,
    )
    db.add(contract)
    db.flush()
    return contract


def _bill(db, contract, month, due, status="UNPAID"):
    bill = Bill(
        contract_id=contract.id, room_id=contract.room_id, month=month, year=2024,
        rent_amount=Decimal("1500000"), total_amount=Decimal("1500000"), due_date=due, status=status,
    )
    db.add(bill)
    db.flush()
    return bill


class TestMarkOverdue:
    def test_only_unpaid_past_due(self, sync_db):
        room = _room(sync_db, "101")
        contract = _contract(sync_db, room, "HD1", date(2025, 1, 1))
        late = _bill(sync_db, contract, 4, date(2024, 5, 5))
        current = _bill(sync_db, contract, 5, date(2024, 6, 15))
        paid = _bill(sync_db, contract, 3, date(2024, 4, 5), status="PAID")
        sync_db.commit()

        assert mark_overdue_in_session(sync_db, TODAY) == 1

        sync_db.expire_all()
        assert sync_db.get(Bill, late.id).status == "OVERDUE"
        assert sync_db.get(Bill, current.id).status == "UNPAID"
        assert sync_db.get(Bill, paid.id).status == "PAID"


class TestExpireContracts:
    def test_expires_and_releases_room(self, sync_db):
        room = _room(sync_db, "201")
        contract = _contract(sync_db, room, "HD2", date(2024, 6, 1))
        sync_db.commit()

        expired, released = expire_contracts_in_session(sync_db, TODAY)

        assert (expired, released) == (1, 1)
        assert sync_db.get(Contract, contract.id).status == "EXPIRED"
        assert sync_db.get(Room, room.id).status == "AVAILABLE"

    def test_room_with_another_active_contract_stays_occupied(self, sync_db):
        room = _room(sync_db, "301")
        _contract(sync_db, room, "HD3", date(2024, 6, 1))
        _contract(sync_db, room, "HD4", date(2025, 6, 1))
        sync_db.commit()

        expired, released = expire_contracts_in_session(sync_db, TODAY)

        assert (expired, released) == (1, 0)
        assert sync_db.get(Room, room.id).status == "OCCUPIED"

    def test_maintenance_room_left_alone(self, sync_db):
        room = _room(sync_db, "401", status="MAINTENANCE")
        _contract(sync_db, room, "HD5", date(2024, 1, 1))
        sync_db.commit()

        expired, released = expire_contracts_in_session(sync_db, TODAY)

        assert (expired, released) == (1, 0)
        assert sync_db.get(Room, room.id).status == "MAINTENANCE"

    def test_ending_today_is_not_expired(self, sync_db):
        room = _room(sync_db, "501")
        _contract(sync_db, room, "HD6", TODAY)
        sync_db.commit()

        assert expire_contracts_in_session(sync_db, TODAY) == (0, 0)
