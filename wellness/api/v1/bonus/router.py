"""
Bonus program API routes
"""

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging
import uuid

from wellness.core.cache import cache, bonus_cache_key
from wellness.core.config import settings
from wellness.core.database import commit_session, get_db
from wellness.core.exceptions import BadRequestException, MissingFieldsException
from wellness.api.v1.auth.dependencies import get_current_user, get_current_user_optional, require_admin
from wellness.models import User
from wellness.services.bonus_ledger import BonusLedger
from wellness.services.referral import ReferralService

from .schemas import (
    ApplyReferralRequest,
    ApplyReferralResponse,
    BonusSettingsData,
    BonusSettingsResponse,
    BonusSettingsUpdate,
    BonusTransactionResponse,
    ReferralCodeResponse,
    ReferralsResponse,
    TransactionCreate,
    TransactionListMeta,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatusUpdate,
    UserBonusAction,
    UserBonusResponse,
)
from .services import BonusService, check_user_access, is_telegram_request, resolve_target_user

router = APIRouter()
logger = logging.getLogger(__name__)


def _cache_headers(state: str) -> dict:
    return {
        "X-Cache": state,
        "Cache-Control": f"max-age={settings.BONUS_CACHE_TTL_SECONDS}, must-revalidate",
    }


@router.get(
    "/user/{user_id}",
    response_model=UserBonusResponse,
    summary="Get user bonus summary",
    description="Balance, referral code, transactions and referrals of a user (cached)"
)
async def get_user_bonus(
    user_id: uuid.UUID,
    request: Request,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    check_user_access(user_id, current_user, telegram=is_telegram_request(request))

    cache_key = bonus_cache_key(user_id)
    cached = await cache.get(cache_key)
    if cached:
        return JSONResponse(content=cached, headers=_cache_headers("HIT"))

    service = BonusService(db)
    user = await service.get_user(user_id)
    summary = await service.get_user_summary(user)
    content = UserBonusResponse(**summary).model_dump(mode="json", by_alias=True)

    # a freshly generated code must be stored before it is cached
    await commit_session(db)
    await cache.set(cache_key, content, expire=settings.BONUS_CACHE_TTL_SECONDS)

    return JSONResponse(content=content, headers=_cache_headers("MISS"))


@router.post(
    "/user/{user_id}",
    response_model=ReferralCodeResponse,
    summary="Regenerate referral code"
)
async def user_bonus_action(
    user_id: uuid.UUID,
    payload: UserBonusAction,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    check_user_access(user_id, current_user)

    if not payload.generate_code:
        raise BadRequestException("Неизвестное действие", "UNKNOWN_ACTION")

    user = await BonusService(db).get_user(user_id)
    code = await ReferralService(db).regenerate_referral_code(user)

    return ReferralCodeResponse(
        message="Реферальный код успешно сгенерирован",
        referral_code=code,
    )


@router.get(
    "/settings",
    response_model=BonusSettingsResponse,
    summary="Get bonus program settings"
)
async def get_bonus_settings(db: AsyncSession = Depends(get_db)):
    bonus_settings = await BonusLedger(db).get_settings()
    return BonusSettingsResponse(data=BonusSettingsData.model_validate(bonus_settings))


@router.put(
    "/settings",
    response_model=BonusSettingsResponse,
    summary="Update bonus program settings"
)
async def update_bonus_settings(
    payload: BonusSettingsUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    missing = [
        field.alias
        for name, field in BonusSettingsUpdate.model_fields.items()
        if getattr(payload, name) is None
    ]
    if missing:
        raise MissingFieldsException(missing)

    bonus_settings = await BonusLedger(db).update_settings(
        booking_bonus_amount=payload.booking_bonus_amount,
        referrer_bonus_amount=payload.referrer_bonus_amount,
        referral_bonus_amount=payload.referral_bonus_amount,
    )
    logger.info(f"Bonus settings changed by admin {admin.id}")

    return BonusSettingsResponse(data=BonusSettingsData.model_validate(bonus_settings))


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    summary="List bonus transactions"
)
async def list_transactions(
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Own history; administrators see everyone unless userId is given"""
    if current_user.is_admin:
        target_id = user_id
    else:
        target_id = resolve_target_user(current_user, user_id)

    service = BonusService(db)
    transactions = await service.ledger.get_transactions(target_id, limit=limit, offset=offset)
    total = await service.count_transactions(target_id)

    return TransactionListResponse(
        data=[BonusTransactionResponse.model_validate(t) for t in transactions],
        meta=TransactionListMeta(total=total, limit=limit, offset=offset),
    )


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Manual balance adjustment"
)
async def create_transaction(
    payload: TransactionCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    if payload.amount == 0:
        raise BadRequestException("Сумма не может быть нулевой", "INVALID_AMOUNT")

    service = BonusService(db)
    await service.get_user(payload.user_id)

    transaction = await service.ledger.manual_adjustment(
        payload.user_id, payload.amount, payload.description
    )
    await db.refresh(transaction)
    logger.info(f"Admin {admin.id} adjusted balance of {payload.user_id} by {payload.amount}")

    return TransactionResponse(data=BonusTransactionResponse.model_validate(transaction))


@router.patch(
    "/transactions/{transaction_id}",
    response_model=TransactionResponse,
    summary="Change transaction status"
)
async def update_transaction_status(
    transaction_id: uuid.UUID,
    payload: TransactionStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    ledger = BonusLedger(db)
    transaction = await ledger.get_transaction(transaction_id)
    transaction = await ledger.update_transaction_status(transaction, payload.status)
    await db.refresh(transaction)

    return TransactionResponse(data=BonusTransactionResponse.model_validate(transaction))


@router.get(
    "/referrals",
    response_model=ReferralsResponse,
    summary="List referred users"
)
async def list_referrals(
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = BonusService(db)
    target_id = resolve_target_user(current_user, user_id)
    user = current_user if target_id == current_user.id else await service.get_user(target_id)

    return ReferralsResponse(**await service.get_referrals(user))


@router.post(
    "/referrals/apply",
    response_model=ApplyReferralResponse,
    summary="Apply referral code",
    description="Link the caller to a referrer; both sides receive a bonus"
)
async def apply_referral_code(
    payload: ApplyReferralRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await BonusService(db).apply_referral(current_user, payload.referral_code)

    return ApplyReferralResponse(
        message="Реферальный код успешно применен",
        **result,
    )
