"""
Promo code schemas
"""

from pydantic import Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid

from wellness.models.promo import DiscountType
from wellness.schemas.base import CamelModel, SuccessResponse


class PromoValidateRequest(CamelModel):
    code: Optional[str] = None
    service_id: Optional[uuid.UUID] = None


class PromoInfo(CamelModel):
    id: uuid.UUID
    code: str
    discount_type: DiscountType
    discount_value: float
    description: Optional[str] = None


class PromoValidateResponse(SuccessResponse):
    data: PromoInfo


class ServiceBrief(CamelModel):
    id: uuid.UUID
    name: str


class PromoBase(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    is_active: bool = True

    @model_validator(mode="after")
    def check_discount(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be after start date")
        return self


class PromoCreate(PromoBase):
    """Empty services list means the code applies to every service"""
    services: List[uuid.UUID] = []


class PromoUpdate(PromoCreate):
    pass


class PromoStatusUpdate(CamelModel):
    is_active: bool


class PromoResponse(CamelModel):
    id: uuid.UUID
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float
    start_date: datetime
    end_date: Optional[datetime] = None
    max_uses: Optional[int] = None
    current_uses: int
    is_active: bool
    services: List[ServiceBrief] = []
    created_at: datetime
    updated_at: datetime


class PromoListResponse(SuccessResponse):
    data: List[PromoResponse]


class PromoDetailResponse(SuccessResponse):
    data: PromoResponse
    message: Optional[str] = None

