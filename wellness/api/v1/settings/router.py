"""
Admin site settings routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from wellness.core.database import get_db
from wellness.core.exceptions import BadRequestException, MissingFieldsException
from wellness.api.v1.auth.dependencies import require_admin
from wellness.models import User
from wellness.services.site_settings import SiteSettingsService

from .schemas import (
    AppointmentSettings,
    AppointmentSettingsData,
    AppointmentSettingsResponse,
    AppointmentSettingsUpdate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _settings_response(require_confirmation: bool) -> AppointmentSettingsResponse:
    return AppointmentSettingsResponse(
        data=AppointmentSettingsData(
            settings=AppointmentSettings(require_confirmation=require_confirmation)
        )
    )


@router.get(
    "/appointments",
    response_model=AppointmentSettingsResponse,
    summary="Get appointment settings"
)
async def get_appointment_settings(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return _settings_response(await SiteSettingsService(db).require_confirmation())


@router.put(
    "/appointments",
    response_model=AppointmentSettingsResponse,
    summary="Update appointment settings",
    description="Toggle whether new and rescheduled bookings wait for manual confirmation"
)
async def update_appointment_settings(
    payload: AppointmentSettingsUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    if payload.require_confirmation is None:
        raise MissingFieldsException(["requireConfirmation"])
    if not isinstance(payload.require_confirmation, bool):
        raise BadRequestException("requireConfirmation должно быть true или false", "INVALID_SETTING")

    enabled = await SiteSettingsService(db).set_require_confirmation(payload.require_confirmation)
    logger.info(f"Admin {admin.id} set requireConfirmation to {enabled}")

    return _settings_response(enabled)
