import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

ID_CARD_PATTERN = r"^[0-9]{9,12}$"
PHONE_PATTERN = r"^[0-9+\s()-]{10,15}$"


def _not_in_future(v: date | None) -> date | None:
    if v is not None and v > date.today():
        raise ValueError("date_of_birth cannot be in the future")
    return v


class TenantCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=2, max_length=100)
    date_of_birth: date
    id_card: str = Field(pattern=ID_CARD_PATTERN)
    hometown: str = Field(min_length=2, max_length=200)
    phone: str = Field(pattern=PHONE_PATTERN)

    @field_validator("date_of_birth")
    @classmethod
    def birth_date_in_past(cls, v: date) -> date:
        return _not_in_future(v)


class TenantUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    date_of_birth: date | None = None
    id_card: str | None = Field(default=None, pattern=ID_CARD_PATTERN)
    hometown: str | None = Field(default=None, min_length=2, max_length=200)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)

    @field_validator("date_of_birth")
    @classmethod
    def birth_date_in_past(cls, v: date | None) -> date | None:
        return _not_in_future(v)


class TenantBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    phone: str
    id_card: str


class TenantResponse(TenantBrief):
    date_of_birth: date
    hometown: str
    created_at: datetime
    updated_at: datetime
