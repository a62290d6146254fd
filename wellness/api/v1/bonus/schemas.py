"""
Bonus program schemas
"""

from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid

from wellness.models.bonus import BonusTransactionType, BonusTransactionStatus
from wellness.schemas.base import CamelModel, SuccessResponse


class UserBrief(CamelModel):
    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ReferredUser(CamelModel):
    user: UserBrief
    created_at: datetime


class BonusTransactionResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    type: BonusTransactionType
    status: BonusTransactionStatus
    amount: float
    description: Optional[str] = None
    appointment_id: Optional[uuid.UUID] = None
    referred_user_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class UserBonusResponse(SuccessResponse):
    """Balance, referral code and history of one user"""
    balance: float
    referral_code: Optional[str] = None
    transactions: List[BonusTransactionResponse] = []
    referred_users: List[ReferredUser] = []
    referrer: Optional[UserBrief] = None


class UserBonusAction(CamelModel):
    generate_code: Optional[bool] = None


class ReferralCodeResponse(SuccessResponse):
    message: str
    referral_code: str


class BonusSettingsData(CamelModel):
    booking_bonus_amount: float
    referrer_bonus_amount: float
    referral_bonus_amount: float


class BonusSettingsUpdate(CamelModel):
    """All three amounts are required; absence is reported by name"""
    booking_bonus_amount: Optional[Decimal] = Field(None, ge=0)
    referrer_bonus_amount: Optional[Decimal] = Field(None, ge=0)
    referral_bonus_amount: Optional[Decimal] = Field(None, ge=0)


class BonusSettingsResponse(SuccessResponse):
    data: BonusSettingsData


class TransactionCreate(CamelModel):
    """Manual balance adjustment by an administrator"""
    user_id: uuid.UUID
    amount: Decimal
    description: Optional[str] = Field(None, max_length=500)


class TransactionStatusUpdate(CamelModel):
    status: BonusTransactionStatus


class TransactionResponse(SuccessResponse):
    data: BonusTransactionResponse


class TransactionListMeta(CamelModel):
    total: int
    limit: int
    offset: int


class TransactionListResponse(SuccessResponse):
    data: List[BonusTransactionResponse]
    meta: TransactionListMeta


class ReferralsResponse(SuccessResponse):
    data: List[ReferredUser]
    referrer: Optional[UserBrief] = None
    referral_code: Optional[str] = None


class ApplyReferralRequest(CamelModel):
    referral_code: Optional[str] = None


class ApplyReferralResponse(SuccessResponse):
    message: str
    referrer: UserBrief
    balance: float
