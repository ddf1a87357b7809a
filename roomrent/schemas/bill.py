import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from roomrent.models.enums import BillStatus
from roomrent.schemas.room import RoomBrief

Month = Annotated[int, Field(ge=1, le=12)]
Year = Annotated[int, Field(ge=2020, le=2100)]


class BillCreate(BaseModel):
    contract_id: uuid.UUID
    room_id: uuid.UUID
    month: Month
    year: Year
    rent_amount: Decimal = Field(gt=0)
    electric_amount: Decimal = Field(default=Decimal(0), ge=0)
    water_amount: Decimal = Field(default=Decimal(0), ge=0)
    service_amount: Decimal = Field(default=Decimal(0), ge=0)
    total_amount: Decimal | None = Field(default=None, ge=0)  # computed when omitted
    due_date: date
    notes: str | None = Field(default=None, max_length=500)


class BillUpdate(BaseModel):
    rent_amount: Decimal | None = Field(default=None, gt=0)
    electric_amount: Decimal | None = Field(default=None, ge=0)
    water_amount: Decimal | None = Field(default=None, ge=0)
    service_amount: Decimal | None = Field(default=None, ge=0)
    total_amount: Decimal | None = Field(default=None, ge=0)
    status: BillStatus | None = None
    due_date: date | None = None
    paid_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class BillPay(BaseModel):
    paid_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class BillGenerate(BaseModel):
    month: Month
    year: Year


class ContractRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_number: str
    status: str


class BillSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_id: uuid.UUID
    room_id: uuid.UUID
    month: int
    year: int
    rent_amount: Decimal
    electric_amount: Decimal
    water_amount: Decimal
    service_amount: Decimal
    total_amount: Decimal
    status: str
    due_date: date
    paid_date: date | None
    notes: str | None
    created_at: datetime


class BillResponse(BillSummary):
    room: RoomBrief
    contract: ContractRef
