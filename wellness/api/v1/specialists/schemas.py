"""
Specialist schemas
"""

from pydantic import Field
from typing import Optional, List
from datetime import datetime
import uuid

from wellness.schemas.base import CamelModel, SuccessResponse


class SpecialistBase(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    photo: Optional[str] = None
    description: Optional[str] = None
    position: Optional[str] = Field(None, max_length=255)
    experience: int = Field(0, ge=0)
    order: int = 0


class SpecialistCreate(SpecialistBase):
    """Photo may be a stored URL or a base64 data URL"""
    user_id: Optional[uuid.UUID] = None


class SpecialistUpdate(CamelModel):
    """Partial update; only fields present in the request are changed"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    photo: Optional[str] = None
    description: Optional[str] = None
    position: Optional[str] = Field(None, max_length=255)
    experience: Optional[int] = Field(None, ge=0)
    order: Optional[int] = None
    user_id: Optional[uuid.UUID] = None


class SpecialistResponse(SpecialistBase):
    id: uuid.UUID
    full_name: str
    user_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class SpecialistListResponse(SuccessResponse):
    data: List[SpecialistResponse]


class SpecialistDetailResponse(SuccessResponse):
    data: SpecialistResponse

