from decimal import Decimal

from pydantic import BaseModel, Field


class PricingSettings(BaseModel):
    electricity_rate: Decimal = Field(ge=0)  # per kWh
    water_rate: Decimal = Field(ge=0)  # per m3
    internet_fee: Decimal = Field(default=Decimal(0), ge=0)
    cleaning_fee: Decimal = Field(default=Decimal(0), ge=0)


class PricingUpdate(BaseModel):
    electricity_rate: Decimal | None = Field(default=None, ge=0)
    water_rate: Decimal | None = Field(default=None, ge=0)
    internet_fee: Decimal | None = Field(default=None, ge=0)
    cleaning_fee: Decimal | None = Field(default=None, ge=0)


class GeneralSettings(BaseModel):
    hotel_name: str | None = Field(default=None, max_length=200)
    address: str | None = Field(default=None, max_length=300)
    phone_number: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=320)


class SettingsResponse(BaseModel):
    general: GeneralSettings
    pricing: PricingSettings
