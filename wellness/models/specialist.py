"""
Specialist and service catalog models
"""

from sqlalchemy import Column, String, Integer, Numeric, Boolean, Text, ForeignKey, Index, Uuid

from .base import BaseModel, TimestampedModel, UUIDModel


class Specialist(BaseModel, TimestampedModel, UUIDModel):
    """Bookable service provider profile"""

    __tablename__ = "specialists"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    photo = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    position = Column(String(255), nullable=True)
    experience = Column(Integer, default=0, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    # Account of the specialist, when they log in to manage their schedule
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)

    __table_args__ = (
        Index("idx_specialists_order", "order"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Service(BaseModel, TimestampedModel, UUIDModel):
    """Service offered by the center"""

    __tablename__ = "services"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    is_archived = Column(Boolean, default=False, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("idx_services_archived_order", "is_archived", "order"),
    )
