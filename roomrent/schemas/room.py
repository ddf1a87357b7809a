import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from roomrent.models.enums import RoomStatus


class RoomCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    number: str = Field(min_length=1, max_length=20)
    floor: int = Field(ge=1)
    area: Decimal = Field(gt=0)
    capacity: int = Field(default=1, ge=1, le=10)
    type: str = Field(min_length=1, max_length=50)
    base_price: Decimal = Field(gt=0)
    status: RoomStatus = RoomStatus.AVAILABLE


class RoomUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    number: str | None = Field(default=None, min_length=1, max_length=20)
    floor: int | None = Field(default=None, ge=1)
    area: Decimal | None = Field(default=None, gt=0)
    capacity: int | None = Field(default=None, ge=1, le=10)
    type: str | None = Field(default=None, min_length=1, max_length=50)
    base_price: Decimal | None = Field(default=None, gt=0)
    status: RoomStatus | None = None


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    number: str
    floor: int
    type: str
    base_price: Decimal
    status: str


class RoomResponse(RoomBrief):
    area: Decimal
    capacity: int
    created_at: datetime
    updated_at: datetime
