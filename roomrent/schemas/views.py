"""Composite read models that nest several resources.

Kept apart from the per-resource schema modules so room, tenant and
contract schemas can import each other's brief shapes without cycles.
"""

from pydantic import BaseModel, ConfigDict

from roomrent.schemas.bill import BillSummary
from roomrent.schemas.contract import ContractSummary
from roomrent.schemas.meter_reading import MeterReadingResponse
from roomrent.schemas.residency_record import ResidencyRecordSummary
from roomrent.schemas.room import RoomBrief, RoomResponse
from roomrent.schemas.tenant import TenantResponse


# ─── Rooms ─────────────────────────────────────────────────────────────────

class RoomListItem(RoomResponse):
    active_contracts: list[ContractSummary]
    active_contract_count: int
    unpaid_bill_count: int


class RoomDetail(RoomResponse):
    contracts: list[ContractSummary]
    bills: list[BillSummary]
    meter_readings: list[MeterReadingResponse]


# ─── Contracts ─────────────────────────────────────────────────────────────

class ContractWithRoom(ContractSummary):
    room: RoomBrief


class ContractListItem(ContractWithRoom):
    recent_bills: list[BillSummary]


# ─── Tenants ───────────────────────────────────────────────────────────────

class ContractHistoryItem(ContractWithRoom):
    bills: list[BillSummary]


class TenantListItem(TenantResponse):
    current_room: RoomBrief | None = None


class TenantDetail(TenantResponse):
    contracts: list[ContractWithRoom]
    residency_records: list[ResidencyRecordSummary]


class TenantHistory(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant: TenantResponse
    contracts: list[ContractHistoryItem]
