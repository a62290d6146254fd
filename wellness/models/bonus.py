"""
Bonus ledger models
"""

from sqlalchemy import Column, String, Numeric, Text, ForeignKey, Index, Enum, Uuid
import enum

from .base import BaseModel, TimestampedModel, UUIDModel


class BonusTransactionType(str, enum.Enum):
    BOOKING = "booking"
    REFERRAL = "referral"
    MANUAL = "manual"
    SPENT = "spent"


class BonusTransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BonusTransaction(BaseModel, TimestampedModel, UUIDModel):
    """Single accrual or spend of bonus currency"""

    __tablename__ = "bonus_transactions"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(Enum(BonusTransactionType, native_enum=False, length=20), nullable=False)
    status = Column(
        Enum(BonusTransactionStatus, native_enum=False, length=20),
        default=BonusTransactionStatus.PENDING,
        nullable=False,
    )
    amount = Column(Numeric(10, 2), nullable=False)  # negative for spends
    description = Column(Text, nullable=True)

    appointment_id = Column(Uuid, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)
    referred_user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        Index("idx_bonus_transactions_user_created", "user_id", "created_at"),
        Index("idx_bonus_transactions_appointment", "appointment_id"),
    )


class BonusSettings(BaseModel, TimestampedModel):
    """Program amounts, a single row keyed 'default'"""

    __tablename__ = "bonus_settings"

    id = Column(String(50), primary_key=True, default="default")
    booking_bonus_amount = Column(Numeric(10, 2), nullable=False)
    referrer_bonus_amount = Column(Numeric(10, 2), nullable=False)
    referral_bonus_amount = Column(Numeric(10, 2), nullable=False)
