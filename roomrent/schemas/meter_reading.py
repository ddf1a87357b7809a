import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from roomrent.schemas.bill import Month, Year


class MeterReadingCreate(BaseModel):
    room_id: uuid.UUID
    month: Month
    year: Year
    electric_reading: Decimal = Field(ge=0)
    water_reading: Decimal = Field(ge=0)
    electric_scan_confidence: Decimal | None = Field(default=None, ge=0, le=1)
    water_scan_confidence: Decimal | None = Field(default=None, ge=0, le=1)
    is_ai_scanned: bool = False
    verified_by: str | None = Field(default=None, max_length=100)


class MeterReadingUpdate(BaseModel):
    electric_reading: Decimal | None = Field(default=None, ge=0)
    water_reading: Decimal | None = Field(default=None, ge=0)
    electric_scan_confidence: Decimal | None = Field(default=None, ge=0, le=1)
    water_scan_confidence: Decimal | None = Field(default=None, ge=0, le=1)
    verified_by: str | None = Field(default=None, max_length=100)


class MeterReadingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    room_id: uuid.UUID
    month: int
    year: int
    electric_reading: Decimal
    water_reading: Decimal
    electric_scan_confidence: Decimal | None
    water_scan_confidence: Decimal | None
    is_ai_scanned: bool
    verified_by: str | None
    verified_at: datetime | None
    created_at: datetime
