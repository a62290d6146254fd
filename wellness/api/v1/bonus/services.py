"""
Bonus API services
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Dict, Any, Optional
import logging
import uuid

from wellness.core.exceptions import ForbiddenException, NotFoundException, UnauthorizedException
from wellness.models import User, BonusTransaction
from wellness.services.bonus_ledger import BonusLedger
from wellness.services.referral import ReferralService, user_brief

logger = logging.getLogger(__name__)

TELEGRAM_REQUEST_PREFIX = "bonus_request_"


def is_telegram_request(request: Request) -> bool:
    """Heuristic for calls made from inside the Telegram mini-app"""
    user_agent = request.headers.get("user-agent", "")
    referer = request.headers.get("referer", "")
    request_id = request.query_params.get("requestId", "")

    return (
        "Telegram" in user_agent
        or request.headers.get("x-telegram-app") == "true"
        or "telegram" in referer
        or request_id.startswith(TELEGRAM_REQUEST_PREFIX)
    )


def check_user_access(
    user_id: uuid.UUID,
    current_user: Optional[User],
    telegram: bool = False,
) -> None:
    """Own data, administrators, and the Telegram mini-app"""
    if telegram:
        return
    if current_user is None:
        raise UnauthorizedException("Необходима авторизация")
    if current_user.id != user_id and not current_user.is_admin:
        raise ForbiddenException("Доступ запрещен")


def resolve_target_user(current_user: User, user_id: Optional[uuid.UUID]) -> uuid.UUID:
    """Administrators may look at another user; everyone else sees their own"""
    if user_id is None or user_id == current_user.id:
        return current_user.id
    if not current_user.is_admin:
        raise ForbiddenException("Доступ запрещен")
    return user_id


class BonusService:
    """Read models of the bonus program"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = BonusLedger(db)
        self.referrals = ReferralService(db)

    async def get_user(self, user_id: uuid.UUID) -> User:
        # the stored balance is moved by bulk UPDATEs
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundException("Пользователь не найден")
        return user

    async def get_user_summary(self, user: User) -> Dict[str, Any]:
        referral_code = await self.referrals.ensure_referral_code(user)

        return {
            "balance": user.bonus_balance,
            "referral_code": referral_code,
            "transactions": await self.ledger.get_transactions(user.id),
            "referred_users": await self.referrals.get_referred_users(user.id),
            "referrer": await self.referrals.get_referrer(user),
        }

    async def count_transactions(self, user_id: Optional[uuid.UUID] = None) -> int:
        query = select(func.count(BonusTransaction.id))
        if user_id is not None:
            query = query.where(BonusTransaction.user_id == user_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def get_referrals(self, user: User) -> Dict[str, Any]:
        return {
            "data": await self.referrals.get_referred_users(user.id),
            "referrer": await self.referrals.get_referrer(user),
            "referral_code": user.referral_code,
        }

    async def apply_referral(self, user: User, referral_code: Optional[str]) -> Dict[str, Any]:
        referrer = await self.referrals.apply_referral_code(user, (referral_code or "").strip())
        return {
            "referrer": user_brief(referrer),
            "balance": await self.ledger.get_balance(user.id),
        }
