"""
Promo code administration
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
import logging
import uuid

from wellness.core.exceptions import BadRequestException, ConflictException, NotFoundException
from wellness.models import PromoCode, Service
from wellness.models.base import utcnow

from .schemas import PromoCreate, PromoUpdate

logger = logging.getLogger(__name__)


class PromoAdminService:
    """CRUD over promo codes and their service restrictions"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_promos(self) -> List[PromoCode]:
        result = await self.db.execute(
            select(PromoCode).order_by(PromoCode.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_promo(self, promo_id: uuid.UUID) -> PromoCode:
        promo = await self.db.get(PromoCode, promo_id)
        if not promo:
            raise NotFoundException("Промокод не найден", "PROMO_NOT_FOUND")
        return promo

    async def _check_code_free(self, code: str, exclude_id: Optional[uuid.UUID] = None) -> None:
        query = select(PromoCode.id).where(PromoCode.code == code)
        if exclude_id is not None:
            query = query.where(PromoCode.id != exclude_id)

        result = await self.db.execute(query)
        if result.first() is not None:
            raise ConflictException("Промокод с таким кодом уже существует", "DUPLICATE_PROMO_CODE")

    async def _load_services(self, service_ids: List[uuid.UUID]) -> List[Service]:
        if not service_ids:
            return []

        result = await self.db.execute(
            select(Service).where(Service.id.in_(service_ids))
        )
        services = list(result.scalars().all())

        if len(services) != len(set(service_ids)):
            raise BadRequestException("Указаны несуществующие услуги", "INVALID_SERVICES")
        return services

    async def create_promo(self, data: PromoCreate) -> PromoCode:
        code = data.code.strip()
        await self._check_code_free(code)

        promo = PromoCode(
            code=code,
            description=data.description,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            start_date=data.start_date or utcnow(),
            end_date=data.end_date,
            max_uses=data.max_uses,
            current_uses=0,
            is_active=data.is_active,
            services=await self._load_services(data.services),
        )
        self.db.add(promo)
        await self.db.flush()

        logger.info(f"Promo code created: {promo.code}")
        return promo

    async def update_promo(self, promo_id: uuid.UUID, data: PromoUpdate) -> PromoCode:
        promo = await self.get_promo(promo_id)
        code = data.code.strip()
        await self._check_code_free(code, exclude_id=promo.id)

        promo.code = code
        promo.description = data.description
        promo.discount_type = data.discount_type.value
        promo.discount_value = data.discount_value
        promo.start_date = data.start_date or promo.start_date
        promo.end_date = data.end_date
        promo.max_uses = data.max_uses
        promo.is_active = data.is_active
        promo.services = await self._load_services(data.services)

        await self.db.flush()
        await self.db.refresh(promo)

        logger.info(f"Promo code updated: {promo.code}")
        return promo

    async def set_status(self, promo_id: uuid.UUID, is_active: bool) -> PromoCode:
        promo = await self.get_promo(promo_id)
        promo.is_active = is_active
        await self.db.flush()

        logger.info(f"Promo code {promo.code} {'activated' if is_active else 'deactivated'}")
        return promo

    async def delete_promo(self, promo_id: uuid.UUID) -> None:
        promo = await self.get_promo(promo_id)
        await self.db.delete(promo)
        await self.db.flush()

        logger.info(f"Promo code deleted: {promo.code}")
