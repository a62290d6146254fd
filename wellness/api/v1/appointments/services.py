"""
Appointment service layer
Booking pipeline, role-scoped listing and status lifecycle
"""

from datetime import datetime, date, time
from decimal import Decimal
from typing import Optional, List, Dict, Tuple
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_

from wellness.core.database import commit_session
from wellness.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    MissingFieldsException,
    NotFoundException,
    SlotUnavailableException,
    UnauthorizedException,
)
from wellness.models import Appointment, AppointmentStatus, Service, Specialist, User
from wellness.models.appointment import ACTIVE_STATUSES, CANCELLED_STATUSES
from wellness.services.availability import AvailabilityService
from wellness.services.bonus_ledger import BonusLedger, SideEffectOutcome, run_in_savepoint
from wellness.services.email_service import EmailService
from wellness.services.promo_service import PromoService, PromoResolution
from wellness.services.site_settings import SiteSettingsService

from .schemas import AppointmentCreate, AppointmentReschedule, SideEffects

logger = logging.getLogger(__name__)

# (attribute, name reported to the client)
REQUIRED_FIELDS = [
    ("specialist_id", "specialistId"),
    ("date", "date"),
    ("time_start", "timeStart"),
    ("time_end", "timeEnd"),
    ("user_name", "userName"),
    ("user_email", "userEmail"),
    ("user_phone", "userPhone"),
]

# Where an appointment may go from each status
ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.ARCHIVED,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.PENDING,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.ARCHIVED,
    },
    AppointmentStatus.COMPLETED: {AppointmentStatus.ARCHIVED},
    AppointmentStatus.CANCELLED: {AppointmentStatus.ARCHIVED},
    AppointmentStatus.ARCHIVED: set(),
}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_uuid(value: str, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise BadRequestException(f"Некорректный идентификатор: {field}", "INVALID_ID")


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise BadRequestException("Некорректная дата, ожидается YYYY-MM-DD", "INVALID_DATE")


def parse_time(value: str) -> str:
    """Normalize to HH:MM"""
    value = value.strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).strftime("%H:%M")
        except ValueError:
            continue
    raise BadRequestException("Некорректное время, ожидается HH:MM", "INVALID_TIME")


def appointment_start(appointment: Appointment) -> datetime:
    return datetime.combine(appointment.date, time.fromisoformat(appointment.time_start))


def group_appointments(
    appointments: List[Appointment],
    now: Optional[datetime] = None,
) -> Dict[str, List[uuid.UUID]]:
    """
    Split into upcoming (pending/confirmed, not started), past (completed,
    or confirmed and started) and cancelled (cancelled/archived)
    """
    now = now or datetime.now()
    grouped: Dict[str, List[uuid.UUID]] = {"upcoming": [], "past": [], "cancelled": []}

    for appointment in appointments:
        status = appointment.status
        if status in CANCELLED_STATUSES:
            grouped["cancelled"].append(appointment.id)
        elif status == AppointmentStatus.COMPLETED:
            grouped["past"].append(appointment.id)
        elif status in ACTIVE_STATUSES and appointment_start(appointment) > now:
            grouped["upcoming"].append(appointment.id)
        elif status == AppointmentStatus.CONFIRMED:
            grouped["past"].append(appointment.id)

    return grouped


class AppointmentService:
    """Service for appointment operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = BonusLedger(db)
        self.promos = PromoService(db)

    # Creation

    async def create_appointment(
        self,
        payload: AppointmentCreate,
        current_user: Optional[User] = None,
    ) -> Tuple[Appointment, PromoResolution, SideEffects]:
        """
        Book a slot: availability, promo, persistence, bonus ledger, email.
        Ledger steps and the email are best-effort; their outcomes are
        reported instead of failing the booking.
        """
        missing = [name for attr, name in REQUIRED_FIELDS if _is_blank(getattr(payload, attr))]
        if missing:
            raise MissingFieldsException(missing)

        specialist_id = parse_uuid(payload.specialist_id, "specialistId")
        day = parse_date(payload.date)
        time_start = parse_time(payload.time_start)
        time_end = parse_time(payload.time_end)
        if time_end <= time_start:
            raise BadRequestException("Время окончания должно быть позже времени начала", "INVALID_TIME")

        specialist = await self.db.get(Specialist, specialist_id)
        if not specialist:
            raise NotFoundException("Специалист не найден")

        service = None
        if not _is_blank(payload.service_id):
            service = await self.db.get(Service, parse_uuid(payload.service_id, "serviceId"))
            if not service:
                raise NotFoundException("Услуга не найдена")

        availability = AvailabilityService(self.db)
        if not await availability.is_available(specialist.id, day, time_start, time_end):
            raise SlotUnavailableException()

        if payload.price is not None:
            price = payload.price
        elif service is not None:
            price = Decimal(str(service.price))
        else:
            price = Decimal("0")

        resolution = await self.promos.resolve(
            payload.promo_code, service.id if service else None, price
        )
        if resolution.applied and not await self.promos.redeem(resolution.promo.id):
            logger.warning(
                f"Promo code {resolution.promo.code} reached its usage cap concurrently, discount dropped"
            )
            resolution = PromoResolution(
                original_price=resolution.original_price,
                final_price=resolution.original_price,
                discount_amount=Decimal("0"),
            )

        site_settings = SiteSettingsService(self.db)
        require_confirmation = await site_settings.require_confirmation()

        appointment = Appointment(
            specialist_id=specialist.id,
            service_id=service.id if service else None,
            user_id=current_user.id if current_user else None,
            user_name=payload.user_name.strip(),
            user_email=payload.user_email.strip(),
            user_phone=payload.user_phone.strip(),
            date=day,
            time_start=time_start,
            time_end=time_end,
            status=AppointmentStatus.PENDING if require_confirmation else AppointmentStatus.CONFIRMED,
            price=resolution.final_price,
            original_price=resolution.original_price,
            discount_amount=resolution.discount_amount,
            promo_code=resolution.promo.code if resolution.applied else None,
            bonus_amount=Decimal("0"),
            notes=payload.notes,
        )
        self.db.add(appointment)
        await self.db.flush()

        logger.info(
            f"Appointment {appointment.id} created for specialist {specialist.id} "
            f"on {day} {time_start}-{time_end}, status {appointment.status.value}"
        )

        side_effects = SideEffects()
        bonus_amount = payload.bonus_amount or Decimal("0")

        if current_user and bonus_amount > 0:
            async def debit() -> SideEffectOutcome:
                outcome = await self.ledger.spend(current_user.id, bonus_amount, appointment.id)
                if outcome == SideEffectOutcome.APPLIED:
                    appointment.bonus_amount = bonus_amount
                    await self.db.flush()
                return outcome

            side_effects.bonus_debit = await run_in_savepoint(self.db, "bonus_debit", debit)

        if current_user and resolution.final_price > 0:
            async def credit() -> SideEffectOutcome:
                await self.ledger.add_booking_bonus(current_user.id, appointment.id)
                return SideEffectOutcome.APPLIED

            side_effects.bonus_credit = await run_in_savepoint(self.db, "bonus_credit", credit)

        # The booking is durable before anyone is told about it
        await self.db.refresh(appointment)
        await commit_session(self.db)

        side_effects.notification = await self._notify(appointment, specialist, service)

        return appointment, resolution, side_effects

    async def _notify(
        self,
        appointment: Appointment,
        specialist: Specialist,
        service: Optional[Service],
    ) -> SideEffectOutcome:
        email_service = EmailService()
        if not email_service.enabled:
            return SideEffectOutcome.SKIPPED_NOT_APPLICABLE

        try:
            sent = await email_service.send_booking_confirmation(
                appointment.user_email,
                {
                    "user_name": appointment.user_name,
                    "specialist_name": specialist.full_name,
                    "service_name": service.name if service else "Консультация",
                    "date": appointment.date,
                    "time_start": appointment.time_start,
                    "time_end": appointment.time_end,
                    "status": appointment.status.value,
                    "price": appointment.price,
                },
            )
        except Exception as e:
            logger.error(
                f"Booking confirmation for appointment {appointment.id} failed: {e}",
                exc_info=True,
            )
            return SideEffectOutcome.SKIPPED_ERROR

        return SideEffectOutcome.APPLIED if sent else SideEffectOutcome.SKIPPED_ERROR

    # Reads

    async def _own_specialist_id(self, user: User) -> Optional[uuid.UUID]:
        result = await self.db.execute(
            select(Specialist.id).where(Specialist.user_id == user.id)
        )
        return result.scalar_one_or_none()

    async def list_appointments(
        self,
        current_user: Optional[User],
        status: Optional[AppointmentStatus] = None,
        specialist_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        service_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        """
        Role-scoped listing: admins see everything, specialists their own
        schedule, everyone else only their own bookings
        """
        if current_user is None:
            return []

        if not current_user.is_admin:
            own_specialist_id = None
            if current_user.is_specialist:
                own_specialist_id = await self._own_specialist_id(current_user)

            if own_specialist_id:
                specialist_id = own_specialist_id
            else:
                user_id = current_user.id

        query = select(Appointment)
        filters = []
        if status is not None:
            filters.append(Appointment.status == status)
        if specialist_id is not None:
            filters.append(Appointment.specialist_id == specialist_id)
        if user_id is not None:
            filters.append(Appointment.user_id == user_id)
        if service_id is not None:
            filters.append(Appointment.service_id == service_id)
        if date_from is not None:
            filters.append(Appointment.date >= date_from)
        if date_to is not None:
            filters.append(Appointment.date <= date_to)

        if filters:
            query = query.where(and_(*filters))

        result = await self.db.execute(
            query.order_by(Appointment.date.desc(), Appointment.time_start.desc())
        )
        return list(result.scalars().all())

    async def get_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        appointment = await self.db.get(Appointment, appointment_id)
        if not appointment:
            raise NotFoundException("Запись не найдена")
        return appointment

    async def _is_assigned_specialist(self, appointment: Appointment, user: User) -> bool:
        if not user.is_specialist:
            return False
        return await self._own_specialist_id(user) == appointment.specialist_id

    async def get_for_user(self, appointment_id: uuid.UUID, current_user: Optional[User]) -> Appointment:
        if current_user is None:
            raise UnauthorizedException()

        appointment = await self.get_appointment(appointment_id)
        if (
            current_user.is_admin
            or appointment.user_id == current_user.id
            or await self._is_assigned_specialist(appointment, current_user)
        ):
            return appointment

        raise ForbiddenException("Нет доступа к этой записи")

    # Lifecycle

    async def change_status(
        self,
        appointment: Appointment,
        new_status: AppointmentStatus,
    ) -> Appointment:
        """Move an appointment and settle its bonus transactions"""
        old_status = appointment.status
        if old_status == new_status:
            return appointment

        if new_status not in ALLOWED_TRANSITIONS[old_status]:
            raise BadRequestException(
                f"Нельзя изменить статус записи с {old_status.value} на {new_status.value}",
                "INVALID_STATUS_TRANSITION",
            )

        appointment.status = new_status
        await self.db.flush()

        if new_status == AppointmentStatus.COMPLETED:
            confirmed = await self.ledger.confirm_appointment_bonuses(appointment.id)
            logger.info(f"Appointment {appointment.id} completed, {confirmed} bonus transaction(s) confirmed")
        elif new_status in CANCELLED_STATUSES and old_status in ACTIVE_STATUSES:
            changed = await self.ledger.cancel_appointment_bonuses(appointment.id)
            logger.info(f"Appointment {appointment.id} cancelled, {changed} bonus transaction(s) settled")

        return appointment

    async def cancel(self, appointment_id: uuid.UUID, current_user: User) -> Appointment:
        appointment = await self.get_appointment(appointment_id)
        if not (current_user.is_admin or appointment.user_id == current_user.id):
            raise ForbiddenException("Отменить запись может только ее владелец или администратор")

        if appointment.status not in ACTIVE_STATUSES:
            raise BadRequestException("Эту запись нельзя отменить", "INVALID_STATUS_TRANSITION")

        return await self.change_status(appointment, AppointmentStatus.CANCELLED)

    async def complete(self, appointment_id: uuid.UUID, current_user: User) -> Appointment:
        appointment = await self.get_appointment(appointment_id)
        if not (current_user.is_admin or await self._is_assigned_specialist(appointment, current_user)):
            raise ForbiddenException("Завершить запись может только специалист или администратор")

        if appointment.status not in ACTIVE_STATUSES:
            raise BadRequestException("Эту запись нельзя завершить", "INVALID_STATUS_TRANSITION")

        return await self.change_status(appointment, AppointmentStatus.COMPLETED)

    async def reschedule(
        self,
        appointment_id: uuid.UUID,
        payload: AppointmentReschedule,
        current_user: User,
    ) -> Appointment:
        """
        Move an active booking to another date or time. The status goes back
        to pending when confirmation is required, otherwise to confirmed.
        """
        missing = [
            name
            for attr, name in (("date", "date"), ("time_start", "timeStart"), ("time_end", "timeEnd"))
            if _is_blank(getattr(payload, attr))
        ]
        if missing:
            raise MissingFieldsException(missing)

        appointment = await self.get_appointment(appointment_id)
        if not (current_user.is_admin or appointment.user_id == current_user.id):
            raise ForbiddenException("Перенести запись может только ее владелец или администратор")

        if appointment.status not in ACTIVE_STATUSES:
            raise BadRequestException("Эту запись нельзя перенести", "INVALID_STATUS_TRANSITION")

        day = parse_date(payload.date)
        time_start = parse_time(payload.time_start)
        time_end = parse_time(payload.time_end)
        if time_end <= time_start:
            raise BadRequestException("Время окончания должно быть позже времени начала", "INVALID_TIME")

        availability = AvailabilityService(self.db)
        if not await availability.is_available(
            appointment.specialist_id, day, time_start, time_end, exclude_id=appointment.id
        ):
            raise SlotUnavailableException()

        require_confirmation = await SiteSettingsService(self.db).require_confirmation()

        appointment.date = day
        appointment.time_start = time_start
        appointment.time_end = time_end
        appointment.status = AppointmentStatus.PENDING if require_confirmation else AppointmentStatus.CONFIRMED
        await self.db.flush()
        await self.db.refresh(appointment)

        logger.info(
            f"Appointment {appointment.id} rescheduled to {day} {time_start}-{time_end}, "
            f"status {appointment.status.value}"
        )
        return appointment

    async def update_status(
        self,
        appointment_id: uuid.UUID,
        new_status: AppointmentStatus,
        current_user: User,
    ) -> Appointment:
        appointment = await self.get_appointment(appointment_id)

        if current_user.is_admin or await self._is_assigned_specialist(appointment, current_user):
            return await self.change_status(appointment, new_status)

        if appointment.user_id == current_user.id:
            if new_status != AppointmentStatus.CANCELLED:
                raise ForbiddenException("Клиент может только отменить запись")
            return await self.change_status(appointment, new_status)

        raise ForbiddenException("Нет доступа к этой записи")

    async def complete_elapsed(self, now: Optional[datetime] = None) -> List[uuid.UUID]:
        """Mark confirmed appointments whose end time has passed as completed"""
        now = now or datetime.now()
        today = now.date()
        current_time = now.strftime("%H:%M")

        result = await self.db.execute(
            select(Appointment).where(
                Appointment.status == AppointmentStatus.CONFIRMED,
                or_(
                    Appointment.date < today,
                    and_(Appointment.date == today, Appointment.time_end <= current_time),
                ),
            )
        )

        completed = []
        for appointment in result.scalars().all():
            await self.change_status(appointment, AppointmentStatus.COMPLETED)
            completed.append(appointment.id)

        if completed:
            logger.info(f"Auto-completed {len(completed)} elapsed appointment(s)")
        return completed
