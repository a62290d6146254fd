"""Models package initialization"""

from .base import Base
from .user import User, UserRole
from .specialist import Specialist, Service
from .appointment import Appointment, AppointmentStatus
from .promo import PromoCode, DiscountType, promo_services
from .bonus import BonusTransaction, BonusTransactionType, BonusTransactionStatus, BonusSettings
from .setting import SiteSetting
from .review import Review, ReviewAttachment, ReviewReaction, ReviewReply

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Specialist",
    "Service",
    "Appointment",
    "AppointmentStatus",
    "PromoCode",
    "DiscountType",
    "promo_services",
    "BonusTransaction",
    "BonusTransactionType",
    "BonusTransactionStatus",
    "BonusSettings",
    "SiteSetting",
    "Review",
    "ReviewAttachment",
    "ReviewReaction",
    "ReviewReply",
]
