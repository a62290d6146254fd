"""
Appointment schemas for request/response validation
"""

from pydantic import ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date as date_type
from decimal import Decimal
import uuid

from wellness.models.appointment import AppointmentStatus
from wellness.schemas.base import CamelModel, SuccessResponse
from wellness.services.bonus_ledger import SideEffectOutcome


class AppointmentCreate(CamelModel):
    """
    Booking request. Required fields are checked by the service so that a
    missing one is reported by name instead of as a validation error.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    specialist_id: Optional[str] = None
    date: Optional[str] = None
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None

    service_id: Optional[str] = None
    promo_code: Optional[str] = Field(None, max_length=50)
    bonus_amount: Optional[Decimal] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentReschedule(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    date: Optional[str] = None
    time_start: Optional[str] = None
    time_end: Optional[str] = None


class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus


class PromoCodeInfo(CamelModel):
    id: uuid.UUID
    code: str
    discount_type: str
    discount_value: float
    discount_amount: float


class AppointmentResponse(CamelModel):
    id: uuid.UUID
    specialist_id: uuid.UUID
    service_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    user_name: str
    user_email: str
    user_phone: str
    date: date_type
    time_start: str
    time_end: str
    status: AppointmentStatus
    price: Optional[float] = None
    original_price: Optional[float] = None
    discount_amount: float = 0
    promo_code: Optional[str] = None
    bonus_amount: float = 0
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    promo_code_info: Optional[PromoCodeInfo] = None


class SideEffects(CamelModel):
    bonus_debit: SideEffectOutcome = SideEffectOutcome.SKIPPED_NOT_APPLICABLE
    bonus_credit: SideEffectOutcome = SideEffectOutcome.SKIPPED_NOT_APPLICABLE
    notification: SideEffectOutcome = SideEffectOutcome.SKIPPED_NOT_APPLICABLE


class AppointmentCreateResponse(SuccessResponse):
    data: AppointmentResponse
    side_effects: SideEffects


class AppointmentDetailResponse(SuccessResponse):
    data: AppointmentResponse


class AppointmentRescheduleResponse(AppointmentDetailResponse):
    message: str = "Appointment rescheduled successfully"


class GroupCounts(CamelModel):
    upcoming: int = 0
    past: int = 0
    cancelled: int = 0


class GroupIds(CamelModel):
    upcoming: List[uuid.UUID] = []
    past: List[uuid.UUID] = []
    cancelled: List[uuid.UUID] = []


class ListMeta(CamelModel):
    total: int
    grouped: GroupCounts


class AppointmentListResponse(SuccessResponse):
    data: List[AppointmentResponse]
    meta: ListMeta
    grouped: GroupIds


class StatusSweepResponse(SuccessResponse):
    updated: int
    appointment_ids: List[uuid.UUID] = []
