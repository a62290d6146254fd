"""Referral program service"""

from typing import Dict, Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from wellness.core.cache import bonus_cache_key, invalidate_after_commit
from wellness.core.config import settings
from wellness.core.exceptions import InvalidReferralCodeException, ReferralCodeGenerationException
from wellness.core.security import SecurityUtils
from wellness.models import User
from wellness.services.bonus_ledger import BonusLedger

logger = logging.getLogger(__name__)


def user_brief(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }


class ReferralService:
    """Service for referral codes and referrer links"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = BonusLedger(db)

    async def _code_taken(self, code: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.referral_code == code)
        )
        return result.first() is not None

    async def generate_unique_code(self) -> Optional[str]:
        """
        Random 8-character hex code not used by any user.
        Returns None when every attempt collided.
        """
        attempts = settings.REFERRAL_CODE_MAX_ATTEMPTS
        for _ in range(attempts):
            code = SecurityUtils.generate_referral_code()
            if not await self._code_taken(code):
                return code

        logger.error(f"Could not generate a unique referral code after {attempts} attempts")
        return None

    async def _assign_code(self, user: User, code: str) -> None:
        user.referral_code = code
        await self.db.flush()
        invalidate_after_commit(self.db, bonus_cache_key(user.id))

    async def ensure_referral_code(self, user: User) -> Optional[str]:
        """Lazily give a user a referral code; None if generation gave up"""
        if user.referral_code:
            return user.referral_code

        code = await self.generate_unique_code()
        if code:
            await self._assign_code(user, code)
            logger.info(f"Generated referral code for user {user.id}")
        return code

    async def regenerate_referral_code(self, user: User) -> str:
        code = await self.generate_unique_code()
        if not code:
            raise ReferralCodeGenerationException(settings.REFERRAL_CODE_MAX_ATTEMPTS)

        await self._assign_code(user, code)
        logger.info(f"Regenerated referral code for user {user.id}")
        return code

    async def apply_referral_code(self, user: User, referral_code: str) -> User:
        """Link a user to the owner of a referral code and credit both"""
        if not referral_code:
            raise InvalidReferralCodeException("Не указан реферальный код")

        if user.referred_by_id:
            raise InvalidReferralCodeException("Реферальный код уже был применен")

        result = await self.db.execute(
            select(User).where(User.referral_code == referral_code, User.is_active == True)
        )
        referrer = result.scalar_one_or_none()

        if not referrer:
            raise InvalidReferralCodeException()

        if referrer.id == user.id:
            raise InvalidReferralCodeException("Нельзя использовать собственный реферальный код")

        user.referred_by_id = referrer.id
        await self.db.flush()

        await self.ledger.add_referral_bonus(referrer.id, user.id)

        logger.info(f"User {user.id} joined by referral of {referrer.id}")
        return referrer

    async def get_referred_users(self, user_id: uuid.UUID) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(User)
            .where(User.referred_by_id == user_id)
            .order_by(User.created_at.desc())
        )
        return [
            {"user": user_brief(referred), "created_at": referred.created_at}
            for referred in result.scalars().all()
        ]

    async def get_referrer(self, user: User) -> Optional[Dict[str, Any]]:
        if not user.referred_by_id:
            return None

        referrer = await self.db.get(User, user.referred_by_id)
        return user_brief(referrer) if referrer else None
