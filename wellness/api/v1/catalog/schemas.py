"""
Service catalog schemas
"""

from typing import Optional, List
import uuid

from wellness.schemas.base import CamelModel, SuccessResponse


class ServiceResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    duration: int
    order: int


class ServiceListResponse(SuccessResponse):
    data: List[ServiceResponse]


class ServiceDetailResponse(SuccessResponse):
    data: ServiceResponse
