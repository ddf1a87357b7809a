import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from roomrent.models.enums import ResidencyType
from roomrent.schemas.tenant import TenantBrief


class ResidencyRecordCreate(BaseModel):
    tenant_id: uuid.UUID
    type: ResidencyType
    start_date: date
    end_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_dates(self) -> "ResidencyRecordCreate":
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ResidencyRecordUpdate(BaseModel):
    type: ResidencyType | None = None
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class ResidencyRecordSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    type: str
    start_date: date
    end_date: date | None
    notes: str | None
    created_at: datetime


class ResidencyRecordResponse(ResidencyRecordSummary):
    tenant: TenantBrief
