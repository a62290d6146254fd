"""
Appointment model
"""

from sqlalchemy import Column, String, Numeric, Date, Text, ForeignKey, Index, Enum, Uuid, CheckConstraint
import enum

from .base import BaseModel, TimestampedModel, UUIDModel


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ARCHIVED = "ARCHIVED"


ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)
CANCELLED_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.ARCHIVED)


class Appointment(BaseModel, TimestampedModel, UUIDModel):
    """Booked slot with a specialist"""

    __tablename__ = "appointments"

    specialist_id = Column(Uuid, ForeignKey("specialists.id"), nullable=False)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    # Guest contact info, also filled for registered users
    user_name = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=False)
    user_phone = Column(String(50), nullable=False)

    date = Column(Date, nullable=False)
    time_start = Column(String(5), nullable=False)  # HH:MM
    time_end = Column(String(5), nullable=False)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, length=20),
        default=AppointmentStatus.PENDING,
        nullable=False,
    )

    # Pricing
    price = Column(Numeric(10, 2), nullable=True)
    original_price = Column(Numeric(10, 2), nullable=True)
    discount_amount = Column(Numeric(10, 2), default=0, nullable=False)
    promo_code = Column(String(50), nullable=True)
    bonus_amount = Column(Numeric(10, 2), default=0, nullable=False)

    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("discount_amount >= 0", name="check_non_negative_discount"),
        Index("idx_appointments_specialist_date", "specialist_id", "date"),
        Index("idx_appointments_user", "user_id"),
        Index("idx_appointments_status", "status"),
    )
