"""Pricing and general settings stored as key/value rows."""

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.core.config import settings as app_settings
from roomrent.models.setting import Setting
from roomrent.schemas.setting import GeneralSettings, PricingSettings

logger = logging.getLogger(__name__)

PRICING_KEYS = ("electricity_rate", "water_rate", "internet_fee", "cleaning_fee")
GENERAL_KEYS = ("hotel_name", "address", "phone_number", "email")


def _pricing_defaults() -> dict[str, Decimal]:
    return {
        "electricity_rate": app_settings.default_electricity_rate,
        "water_rate": app_settings.default_water_rate,
        "internet_fee": Decimal(0),
        "cleaning_fee": Decimal(0),
    }


async def _load(db: AsyncSession, keys: tuple[str, ...]) -> dict[str, str]:
    result = await db.execute(select(Setting).where(Setting.key.in_(keys)))
    return {row.key: row.value for row in result.scalars().all()}


async def get_pricing(db: AsyncSession) -> PricingSettings:
    values = _pricing_defaults()
    for key, raw in (await _load(db, PRICING_KEYS)).items():
        try:
            values[key] = Decimal(raw)
        except InvalidOperation:
            logger.warning("Ignoring non-numeric setting %s=%r", key, raw)
    return PricingSettings(**values)


async def get_general(db: AsyncSession) -> GeneralSettings:
    return GeneralSettings(**await _load(db, GENERAL_KEYS))


async def upsert(db: AsyncSession, values: dict[str, object]) -> None:
    """Write every non-None value, creating rows for keys seen the first time."""
    existing = {
        row.key: row
        for row in (
            await db.execute(select(Setting).where(Setting.key.in_(list(values))))
        ).scalars().all()
    }
    for key, value in values.items():
        if value is None:
            continue
        row = existing.get(key)
        if row is None:
            db.add(Setting(key=key, value=str(value)))
        else:
            row.value = str(value)
    await db.flush()
