"""
Promo code API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from wellness.core.database import get_db
from wellness.core.exceptions import InvalidPromoException, MissingFieldsException, NotFoundException
from wellness.api.v1.auth.dependencies import require_admin
from wellness.models import User
from wellness.schemas.base import MessageResponse
from wellness.services.promo_service import PromoService

from .schemas import (
    PromoCreate,
    PromoDetailResponse,
    PromoInfo,
    PromoListResponse,
    PromoResponse,
    PromoStatusUpdate,
    PromoUpdate,
    PromoValidateRequest,
    PromoValidateResponse,
)
from .services import PromoAdminService

router = APIRouter()
admin_router = APIRouter()


@router.post(
    "/validate",
    response_model=PromoValidateResponse,
    summary="Validate promo code",
    description="Check a code against dates, usage cap and service; does not redeem it"
)
async def validate_promo(
    payload: PromoValidateRequest,
    db: AsyncSession = Depends(get_db)
):
    code = (payload.code or "").strip()
    if not code:
        raise MissingFieldsException(["code"])

    validation = await PromoService(db).validate_promo(code, payload.service_id)

    if validation.get("not_found"):
        raise NotFoundException(validation["error"], "PROMO_NOT_FOUND")
    if not validation["valid"]:
        raise InvalidPromoException(validation["error"])

    return PromoValidateResponse(data=PromoInfo.model_validate(validation["promo"]))


# Admin

@admin_router.get("", response_model=PromoListResponse, summary="List promo codes")
async def list_promos(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    promos = await PromoAdminService(db).list_promos()
    return PromoListResponse(data=[PromoResponse.model_validate(p) for p in promos])


@admin_router.post(
    "",
    response_model=PromoDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create promo code"
)
async def create_promo(
    payload: PromoCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    promo = await PromoAdminService(db).create_promo(payload)
    return PromoDetailResponse(
        data=PromoResponse.model_validate(promo),
        message="Промокод успешно создан",
    )


@admin_router.get("/{promo_id}", response_model=PromoDetailResponse, summary="Get promo code")
async def get_promo(
    promo_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    promo = await PromoAdminService(db).get_promo(promo_id)
    return PromoDetailResponse(data=PromoResponse.model_validate(promo))


@admin_router.put("/{promo_id}", response_model=PromoDetailResponse, summary="Update promo code")
async def update_promo(
    promo_id: uuid.UUID,
    payload: PromoUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    promo = await PromoAdminService(db).update_promo(promo_id, payload)
    return PromoDetailResponse(
        data=PromoResponse.model_validate(promo),
        message="Промокод успешно обновлен",
    )


@admin_router.delete("/{promo_id}", response_model=MessageResponse, summary="Delete promo code")
async def delete_promo(
    promo_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await PromoAdminService(db).delete_promo(promo_id)
    return MessageResponse(message="Промокод успешно удален")


@admin_router.patch(
    "/{promo_id}/status",
    response_model=MessageResponse,
    summary="Activate or deactivate promo code"
)
async def set_promo_status(
    promo_id: uuid.UUID,
    payload: PromoStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await PromoAdminService(db).set_status(promo_id, payload.is_active)
    message = "Промокод успешно активирован" if payload.is_active else "Промокод успешно деактивирован"
    return MessageResponse(message=message)
