"""
Promo code models
"""

from sqlalchemy import Column, String, Integer, Numeric, Boolean, ForeignKey, Index, CheckConstraint, Text, DateTime, Table, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from typing import Optional
import enum

from .base import Base, BaseModel, TimestampedModel, UUIDModel, utcnow


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# No rows for a promo means it applies to every service
promo_services = Table(
    "promo_services",
    Base.metadata,
    Column("promo_id", Uuid, ForeignKey("promo_codes.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Uuid, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class PromoCode(BaseModel, TimestampedModel, UUIDModel):
    """Discount code redeemable on a booking"""

    __tablename__ = "promo_codes"

    code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Discount details
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    discount_value = Column(Numeric(10, 2), nullable=False)

    # Validity
    start_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    end_date = Column(DateTime(timezone=True), nullable=True)

    # Usage limits
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    services = relationship("Service", secondary=promo_services, lazy="selectin")

    __table_args__ = (
        CheckConstraint("discount_value > 0", name="check_positive_discount"),
        CheckConstraint("max_uses IS NULL OR max_uses > 0", name="check_positive_max_uses"),
        Index("idx_promo_codes_active_dates", "is_active", "start_date", "end_date"),
    )

    @property
    def service_ids(self) -> list:
        return [service.id for service in self.services]

    def invalid_reason(self, now: Optional[datetime] = None) -> Optional[str]:
        """Return why the code cannot be redeemed right now, or None"""
        now = now or utcnow()

        if not self.is_active:
            return "Промокод неактивен"

        if self.start_date and _aware(self.start_date) > now:
            return "Промокод еще не действует"

        if self.end_date and _aware(self.end_date) < now:
            return "Срок действия промокода истек"

        if self.max_uses is not None and self.current_uses >= self.max_uses:
            return "Промокод больше не доступен"

        return None

    def applies_to(self, service_id) -> bool:
        service_ids = self.service_ids
        return not service_ids or service_id in service_ids


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
