"""
Promo code service
Validates codes, computes discounts and records redemptions
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict, Any
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from wellness.models import PromoCode, DiscountType

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def calculate_discount(discount_type: str, discount_value, price) -> Decimal:
    """Discount for a price, never more than the price itself"""
    price = Decimal(str(price))
    value = Decimal(str(discount_value))

    if price <= 0:
        return Decimal("0")

    if discount_type == DiscountType.PERCENTAGE.value:
        discount = price * value / Decimal(100)
    else:  # fixed amount
        discount = value

    return min(discount, price).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PromoResolution:
    """Outcome of applying an optional promo code to a booking price"""

    original_price: Decimal
    final_price: Decimal
    discount_amount: Decimal
    promo: Optional[PromoCode] = None

    @property
    def applied(self) -> bool:
        return self.promo is not None

    def promo_info(self) -> Optional[Dict[str, Any]]:
        if not self.promo:
            return None
        return {
            "id": self.promo.id,
            "code": self.promo.code,
            "discount_type": self.promo.discount_type,
            "discount_value": self.promo.discount_value,
            "discount_amount": self.discount_amount,
        }


class PromoService:
    """
    Service for promo code operations
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[PromoCode]:
        result = await self.db.execute(
            select(PromoCode).where(PromoCode.code == code)
        )
        return result.scalar_one_or_none()

    async def validate_promo(
        self,
        code: str,
        service_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, Any]:
        """
        Check that a code exists, is active, within its dates, under its
        usage cap and applicable to the service (when one is given)
        """
        promo = await self.get_by_code(code)

        if not promo or not promo.is_active:
            return {
                "valid": False,
                "not_found": True,
                "error": "Промокод не найден или неактивен"
            }

        reason = promo.invalid_reason()
        if reason:
            return {"valid": False, "error": reason}

        if service_id is not None and not promo.applies_to(service_id):
            return {
                "valid": False,
                "error": "Промокод не применим к выбранной услуге"
            }

        return {"valid": True, "promo": promo}

    async def resolve(
        self,
        code: Optional[str],
        service_id: Optional[uuid.UUID],
        price,
    ) -> PromoResolution:
        """
        Apply a promo code to a booking price.
        An unusable code never fails the booking; it just yields no discount.
        """
        original_price = Decimal(str(price or 0))
        no_discount = PromoResolution(
            original_price=original_price,
            final_price=original_price,
            discount_amount=Decimal("0"),
        )

        if not code or service_id is None:
            return no_discount

        try:
            validation = await self.validate_promo(code, service_id)
        except Exception as e:
            logger.error(f"Promo lookup failed for code {code}: {e}", exc_info=True)
            return no_discount

        if not validation["valid"]:
            logger.info(f"Promo code {code} not applied: {validation['error']}")
            return no_discount

        promo = validation["promo"]
        discount = calculate_discount(promo.discount_type, promo.discount_value, original_price)

        return PromoResolution(
            original_price=original_price,
            final_price=original_price - discount,
            discount_amount=discount,
            promo=promo,
        )

    async def redeem(self, promo_id: uuid.UUID) -> bool:
        """
        Increment the usage counter unless the cap is already reached.
        Runs in the caller's transaction, so it commits with the booking.
        """
        result = await self.db.execute(
            update(PromoCode)
            .where(
                PromoCode.id == promo_id,
                PromoCode.is_active == True,
                (PromoCode.max_uses.is_(None)) | (PromoCode.current_uses < PromoCode.max_uses),
            )
            .values(current_uses=PromoCode.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
