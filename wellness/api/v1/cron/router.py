"""
Scheduled job endpoints for external schedulers
"""

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from wellness.core.config import settings
from wellness.core.database import get_db
from wellness.core.exceptions import UnauthorizedException
from wellness.core.security import SecurityUtils
from wellness.api.v1.appointments.schemas import StatusSweepResponse
from wellness.api.v1.appointments.services import AppointmentService

router = APIRouter()


async def verify_cron_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> None:
    """Open when CRON_API_KEY is unset"""
    if not settings.CRON_API_KEY:
        return
    if not x_api_key or not SecurityUtils.constant_time_equals(x_api_key, settings.CRON_API_KEY):
        raise UnauthorizedException("Неверный API ключ", "INVALID_API_KEY")


@router.get(
    "/update-appointment-statuses",
    response_model=StatusSweepResponse,
    dependencies=[Depends(verify_cron_key)],
    summary="Complete elapsed appointments"
)
async def update_appointment_statuses(db: AsyncSession = Depends(get_db)):
    completed = await AppointmentService(db).complete_elapsed()
    return StatusSweepResponse(updated=len(completed), appointment_ids=completed)
