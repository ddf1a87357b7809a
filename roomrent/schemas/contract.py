import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from roomrent.models.enums import ContractStatus
from roomrent.schemas.bill import BillSummary
from roomrent.schemas.room import RoomBrief
from roomrent.schemas.tenant import TenantBrief


def _dedupe(ids: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
    if ids is None:
        return None
    return list(dict.fromkeys(ids))


class ContractCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    contract_number: str | None = Field(default=None, min_length=1, max_length=30)
    room_id: uuid.UUID
    tenant_ids: list[uuid.UUID] = Field(min_length=1)
    primary_tenant_id: uuid.UUID
    start_date: date
    end_date: date
    deposit: Decimal = Field(gt=0)
    status: ContractStatus = ContractStatus.ACTIVE
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("tenant_ids")
    @classmethod
    def unique_tenants(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        return _dedupe(v)

    @model_validator(mode="after")
    def check_dates(self) -> "ContractCreate":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ContractUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    contract_number: str | None = Field(default=None, min_length=1, max_length=30)
    room_id: uuid.UUID | None = None
    tenant_ids: list[uuid.UUID] | None = Field(default=None, min_length=1)
    primary_tenant_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    deposit: Decimal | None = Field(default=None, gt=0)
    status: ContractStatus | None = None
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("tenant_ids")
    @classmethod
    def unique_tenants(cls, v: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
        return _dedupe(v)


class ContractStatusUpdate(BaseModel):
    status: ContractStatus


class CheckoutRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ContractTenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_primary: bool
    tenant: TenantBrief


class ContractSummary(BaseModel):
    """Contract without its bills; used inside room and tenant views."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    contract_number: str
    room_id: uuid.UUID
    start_date: date
    end_date: date
    deposit: Decimal
    status: str
    notes: str | None
    terminated_at: date | None = None
    created_at: datetime
    tenants: list[ContractTenantResponse] = Field(validation_alias="tenant_links")


class ContractResponse(ContractSummary):
    room: RoomBrief
    bills: list[BillSummary]
    updated_at: datetime


class ContractNumberResponse(BaseModel):
    contract_number: str
