"""
Service catalog routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from wellness.core.database import get_db
from wellness.core.exceptions import NotFoundException
from wellness.models import Service

from .schemas import ServiceDetailResponse, ServiceListResponse, ServiceResponse

router = APIRouter()


@router.get("", response_model=ServiceListResponse, summary="List services")
async def list_services(db: AsyncSession = Depends(get_db)):
    """Bookable services, archived ones excluded"""
    result = await db.execute(
        select(Service)
        .where(Service.is_archived == False)
        .order_by(Service.order, Service.name)
    )
    services = result.scalars().all()
    return ServiceListResponse(data=[ServiceResponse.model_validate(s) for s in services])


@router.get("/{service_id}", response_model=ServiceDetailResponse, summary="Get service")
async def get_service(service_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    service = await db.get(Service, service_id)
    if not service:
        raise NotFoundException("Услуга не найдена", "SERVICE_NOT_FOUND")
    return ServiceDetailResponse(data=ServiceResponse.model_validate(service))
