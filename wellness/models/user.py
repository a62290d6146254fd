"""
User model
Holds contact details, role and the bonus balance of a client
"""

from sqlalchemy import Column, String, Boolean, Numeric, ForeignKey, Index, Enum, Uuid
import enum

from .base import BaseModel, TimestampedModel, UUIDModel


class UserRole(str, enum.Enum):
    USER = "user"
    SPECIALIST = "specialist"
    ADMIN = "admin"


class User(BaseModel, TimestampedModel, UUIDModel):
    """Registered client, specialist or administrator"""

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(Enum(UserRole, native_enum=False, length=20), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Bonus program
    bonus_balance = Column(Numeric(10, 2), default=0, nullable=False)
    referral_code = Column(String(20), unique=True, nullable=True)
    referred_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    telegram_id = Column(String(64), unique=True, nullable=True)

    __table_args__ = (
        Index("idx_users_referred_by", "referred_by_id"),
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_specialist(self) -> bool:
        return self.role == UserRole.SPECIALIST
