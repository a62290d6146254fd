"""
Appointment API routes
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
import uuid

from wellness.core.config import settings
from wellness.core.database import get_db
from wellness.api.v1.auth.dependencies import get_current_user, get_current_user_optional
from wellness.middleware.rate_limit import limiter
from wellness.models import User, AppointmentStatus

from .schemas import (
    AppointmentCreate,
    AppointmentCreateResponse,
    AppointmentDetailResponse,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentRescheduleResponse,
    AppointmentResponse,
    AppointmentStatusUpdate,
    GroupCounts,
    GroupIds,
    ListMeta,
    PromoCodeInfo,
)
from .services import AppointmentService, group_appointments

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
    description="Create a booking, applying an optional promo code and bonus spend"
)
@limiter.limit(settings.RATE_LIMIT_BOOKING)
async def create_appointment(
    request: Request,
    response: Response,
    payload: AppointmentCreate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    """Create appointment"""
    service = AppointmentService(db)
    appointment, resolution, side_effects = await service.create_appointment(payload, current_user)

    data = AppointmentResponse.model_validate(appointment)
    promo_info = resolution.promo_info()
    if promo_info:
        data.promo_code_info = PromoCodeInfo(**promo_info)

    return AppointmentCreateResponse(data=data, side_effects=side_effects)


@router.get(
    "",
    response_model=AppointmentListResponse,
    summary="List appointments",
    description="Appointments visible to the caller, with upcoming/past/cancelled grouping"
)
async def list_appointments(
    status: Optional[AppointmentStatus] = None,
    specialist_id: Optional[uuid.UUID] = Query(None, alias="specialistId"),
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    service_id: Optional[uuid.UUID] = Query(None, alias="serviceId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointments = await service.list_appointments(
        current_user,
        status=status,
        specialist_id=specialist_id,
        user_id=user_id,
        service_id=service_id,
        date_from=date_from,
        date_to=date_to,
    )
    grouped = group_appointments(appointments)

    return AppointmentListResponse(
        data=[AppointmentResponse.model_validate(a) for a in appointments],
        meta=ListMeta(
            total=len(appointments),
            grouped=GroupCounts(**{key: len(ids) for key, ids in grouped.items()}),
        ),
        grouped=GroupIds(**grouped),
    )


@router.get(
    "/{appointment_id}",
    response_model=AppointmentDetailResponse,
    summary="Get appointment"
)
async def get_appointment(
    appointment_id: uuid.UUID,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.get_for_user(appointment_id, current_user)
    return AppointmentDetailResponse(data=AppointmentResponse.model_validate(appointment))


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentDetailResponse,
    summary="Cancel appointment",
    description="Cancel a booking; pending bonuses are voided and spent bonuses refunded"
)
async def cancel_appointment(
    appointment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.cancel(appointment_id, current_user)
    return AppointmentDetailResponse(data=AppointmentResponse.model_validate(appointment))


@router.post(
    "/{appointment_id}/complete",
    response_model=AppointmentDetailResponse,
    summary="Complete appointment",
    description="Mark a visit as done and confirm its pending bonuses"
)
async def complete_appointment(
    appointment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.complete(appointment_id, current_user)
    return AppointmentDetailResponse(data=AppointmentResponse.model_validate(appointment))


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentDetailResponse,
    summary="Update appointment status"
)
async def update_appointment_status(
    appointment_id: uuid.UUID,
    payload: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.update_status(appointment_id, payload.status, current_user)
    return AppointmentDetailResponse(data=AppointmentResponse.model_validate(appointment))


@router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentRescheduleResponse,
    summary="Reschedule appointment",
    description="Move a booking to a new date and time; the owner or an administrator may do this"
)
async def reschedule_appointment(
    appointment_id: uuid.UUID,
    payload: AppointmentReschedule,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.reschedule(appointment_id, payload, current_user)
    return AppointmentRescheduleResponse(data=AppointmentResponse.model_validate(appointment))
