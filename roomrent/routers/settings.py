import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user, require_admin
from roomrent.models.user import User
from roomrent.schemas.common import Envelope
from roomrent.schemas.setting import (
    GeneralSettings,
    PricingSettings,
    PricingUpdate,
    SettingsResponse,
)
from roomrent.services import settings as settings_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=Envelope[SettingsResponse])
async def get_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {
        "data": {
            "general": await settings_service.get_general(db),
            "pricing": await settings_service.get_pricing(db),
        }
    }


@router.put("/pricing", response_model=Envelope[PricingSettings])
async def update_pricing(
    payload: PricingUpdate,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await settings_service.upsert(db, payload.model_dump(exclude_none=True))
    logger.info("Pricing settings updated by %s", user.username)
    return {"message": "Pricing updated successfully", "data": await settings_service.get_pricing(db)}


@router.put("/general", response_model=Envelope[GeneralSettings])
async def update_general(
    payload: GeneralSettings,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await settings_service.upsert(db, payload.model_dump(exclude_none=True))
    logger.info("General settings updated by %s", user.username)
    return {"message": "Settings updated successfully", "data": await settings_service.get_general(db)}
