"""
Bonus ledger service

Every balance change goes through a BonusTransaction written in the same
database transaction. The stored balance moves only when a transaction is
created as completed, or moves pending -> completed (+amount) or
completed -> cancelled (-amount).
"""

from decimal import Decimal
from typing import Awaitable, Callable, List, Optional
import enum
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from wellness.core.cache import bonus_cache_key, invalidate_after_commit
from wellness.core.config import settings
from wellness.core.exceptions import BadRequestException, NotFoundException
from wellness.models import (
    User,
    BonusTransaction,
    BonusTransactionType,
    BonusTransactionStatus,
    BonusSettings,
)

logger = logging.getLogger(__name__)


class SideEffectOutcome(str, enum.Enum):
    """Result of a best-effort step of the booking flow"""

    APPLIED = "applied"
    SKIPPED_INSUFFICIENT_FUNDS = "skipped_insufficient_funds"
    SKIPPED_NOT_APPLICABLE = "skipped_not_applicable"
    SKIPPED_ERROR = "skipped_error"


# Allowed status moves and their effect on the balance, as a multiplier of amount
STATUS_TRANSITIONS = {
    (BonusTransactionStatus.PENDING, BonusTransactionStatus.COMPLETED): 1,
    (BonusTransactionStatus.PENDING, BonusTransactionStatus.CANCELLED): 0,
    (BonusTransactionStatus.COMPLETED, BonusTransactionStatus.CANCELLED): -1,
}


async def run_in_savepoint(
    db: AsyncSession,
    name: str,
    effect: Callable[[], Awaitable[SideEffectOutcome]],
) -> SideEffectOutcome:
    """Run a ledger step in a SAVEPOINT; a failure rolls back only that step"""
    try:
        async with db.begin_nested():
            return await effect()
    except Exception as e:
        logger.error(f"Side effect '{name}' failed and was rolled back: {e}", exc_info=True)
        return SideEffectOutcome.SKIPPED_ERROR


class BonusLedger:
    """Service for bonus accruals, spends and program settings"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Settings

    async def get_settings(self) -> BonusSettings:
        """Program amounts, created with defaults on first access"""
        bonus_settings = await self.db.get(BonusSettings, "default")
        if bonus_settings is None:
            bonus_settings = BonusSettings(
                id="default",
                booking_bonus_amount=Decimal(str(settings.BOOKING_BONUS_AMOUNT)),
                referrer_bonus_amount=Decimal(str(settings.REFERRER_BONUS_AMOUNT)),
                referral_bonus_amount=Decimal(str(settings.REFERRAL_BONUS_AMOUNT)),
            )
            self.db.add(bonus_settings)
            await self.db.flush()
        return bonus_settings

    async def update_settings(
        self,
        booking_bonus_amount: Decimal,
        referrer_bonus_amount: Decimal,
        referral_bonus_amount: Decimal,
    ) -> BonusSettings:
        bonus_settings = await self.get_settings()
        bonus_settings.booking_bonus_amount = booking_bonus_amount
        bonus_settings.referrer_bonus_amount = referrer_bonus_amount
        bonus_settings.referral_bonus_amount = referral_bonus_amount
        await self.db.flush()

        logger.info(
            f"Bonus settings updated: booking={booking_bonus_amount}, "
            f"referrer={referrer_bonus_amount}, referral={referral_bonus_amount}"
        )
        return bonus_settings

    # Reads

    async def get_balance(self, user_id: uuid.UUID) -> Decimal:
        result = await self.db.execute(
            select(User.bonus_balance).where(User.id == user_id)
        )
        balance = result.scalar_one_or_none()
        return Decimal(str(balance)) if balance is not None else Decimal("0")

    async def get_transaction(self, transaction_id: uuid.UUID) -> BonusTransaction:
        transaction = await self.db.get(BonusTransaction, transaction_id)
        if transaction is None:
            raise NotFoundException("Транзакция не найдена")
        return transaction

    async def get_transactions(
        self,
        user_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[BonusTransaction]:
        query = select(BonusTransaction).order_by(BonusTransaction.created_at.desc())
        if user_id is not None:
            query = query.where(BonusTransaction.user_id == user_id)
        if limit is not None:
            query = query.limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # Writes

    async def create_transaction(
        self,
        user_id: uuid.UUID,
        amount: Decimal,
        type: BonusTransactionType,
        status: BonusTransactionStatus = BonusTransactionStatus.PENDING,
        description: Optional[str] = None,
        appointment_id: Optional[uuid.UUID] = None,
        referred_user_id: Optional[uuid.UUID] = None,
    ) -> BonusTransaction:
        """Record a transaction; completed ones move the balance immediately"""
        transaction = BonusTransaction(
            user_id=user_id,
            amount=Decimal(str(amount)),
            type=type,
            status=status,
            description=description,
            appointment_id=appointment_id,
            referred_user_id=referred_user_id,
        )
        self.db.add(transaction)

        if status == BonusTransactionStatus.COMPLETED:
            await self._adjust_balance(user_id, transaction.amount)

        await self.db.flush()
        self._invalidate(user_id)
        return transaction

    async def update_transaction_status(
        self,
        transaction: BonusTransaction,
        new_status: BonusTransactionStatus,
    ) -> BonusTransaction:
        old_status = transaction.status
        if old_status == new_status:
            return transaction

        multiplier = STATUS_TRANSITIONS.get((old_status, new_status))
        if multiplier is None:
            raise BadRequestException(
                f"Недопустимый переход статуса: {old_status.value} -> {new_status.value}",
                "INVALID_STATUS_TRANSITION",
            )

        transaction.status = new_status
        if multiplier:
            await self._adjust_balance(transaction.user_id, transaction.amount * multiplier)

        await self.db.flush()
        self._invalidate(transaction.user_id)

        logger.info(
            f"Bonus transaction {transaction.id} moved {old_status.value} -> {new_status.value}"
        )
        return transaction

    async def spend(
        self,
        user_id: uuid.UUID,
        amount: Decimal,
        appointment_id: Optional[uuid.UUID] = None,
    ) -> SideEffectOutcome:
        """
        Debit bonus currency toward a booking.
        The balance check and the debit are one conditional UPDATE, so two
        concurrent bookings cannot overdraw the balance.
        """
        amount = Decimal(str(amount))
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.bonus_balance >= amount)
            .values(bonus_balance=User.bonus_balance - amount)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            logger.warning(
                f"Insufficient bonus balance for user {user_id}: requested {amount}, spend skipped"
            )
            return SideEffectOutcome.SKIPPED_INSUFFICIENT_FUNDS

        self.db.add(BonusTransaction(
            user_id=user_id,
            amount=-amount,
            type=BonusTransactionType.SPENT,
            status=BonusTransactionStatus.COMPLETED,
            description="Списание бонусов при оплате услуги",
            appointment_id=appointment_id,
        ))
        await self.db.flush()
        self._invalidate(user_id)

        logger.info(f"Spent {amount} bonuses of user {user_id} on appointment {appointment_id}")
        return SideEffectOutcome.APPLIED

    async def add_booking_bonus(
        self,
        user_id: uuid.UUID,
        appointment_id: uuid.UUID,
    ) -> BonusTransaction:
        """Pending accrual, confirmed when the appointment is completed"""
        bonus_settings = await self.get_settings()
        return await self.create_transaction(
            user_id=user_id,
            amount=bonus_settings.booking_bonus_amount,
            type=BonusTransactionType.BOOKING,
            status=BonusTransactionStatus.PENDING,
            description="Бонус за бронирование услуги",
            appointment_id=appointment_id,
        )

    async def add_referral_bonus(self, referrer_id: uuid.UUID, referred_id: uuid.UUID) -> None:
        """Credit both sides of a referral"""
        bonus_settings = await self.get_settings()

        await self.create_transaction(
            user_id=referrer_id,
            amount=bonus_settings.referrer_bonus_amount,
            type=BonusTransactionType.REFERRAL,
            status=BonusTransactionStatus.COMPLETED,
            description="Бонус за приглашение нового пользователя",
            referred_user_id=referred_id,
        )
        await self.create_transaction(
            user_id=referred_id,
            amount=bonus_settings.referral_bonus_amount,
            type=BonusTransactionType.REFERRAL,
            status=BonusTransactionStatus.COMPLETED,
            description="Бонус за регистрацию по приглашению",
        )

    async def manual_adjustment(
        self,
        user_id: uuid.UUID,
        amount: Decimal,
        description: Optional[str] = None,
        appointment_id: Optional[uuid.UUID] = None,
    ) -> BonusTransaction:
        return await self.create_transaction(
            user_id=user_id,
            amount=amount,
            type=BonusTransactionType.MANUAL,
            status=BonusTransactionStatus.COMPLETED,
            description=description or "Ручная корректировка баланса администратором",
            appointment_id=appointment_id,
        )

    # Appointment lifecycle

    async def _appointment_transactions(self, appointment_id: uuid.UUID) -> List[BonusTransaction]:
        result = await self.db.execute(
            select(BonusTransaction)
            .where(BonusTransaction.appointment_id == appointment_id)
            .order_by(BonusTransaction.created_at)
        )
        return list(result.scalars().all())

    async def confirm_appointment_bonuses(self, appointment_id: uuid.UUID) -> int:
        """Complete the pending accruals of a finished appointment"""
        confirmed = 0
        for transaction in await self._appointment_transactions(appointment_id):
            if transaction.status == BonusTransactionStatus.PENDING:
                await self.update_transaction_status(transaction, BonusTransactionStatus.COMPLETED)
                confirmed += 1
        return confirmed

    async def cancel_appointment_bonuses(self, appointment_id: uuid.UUID) -> int:
        """Cancel pending accruals and refund spent bonuses of a cancelled appointment"""
        changed = 0
        for transaction in await self._appointment_transactions(appointment_id):
            if transaction.status == BonusTransactionStatus.PENDING:
                await self.update_transaction_status(transaction, BonusTransactionStatus.CANCELLED)
                changed += 1
            elif (
                transaction.type == BonusTransactionType.SPENT
                and transaction.status == BonusTransactionStatus.COMPLETED
            ):
                await self.manual_adjustment(
                    transaction.user_id,
                    -transaction.amount,
                    description="Возврат бонусов за отмененную запись",
                    appointment_id=appointment_id,
                )
                changed += 1
        return changed

    # Internals

    async def _adjust_balance(self, user_id: uuid.UUID, delta: Decimal) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(bonus_balance=User.bonus_balance + delta)
            .execution_options(synchronize_session=False)
        )

    def _invalidate(self, user_id: uuid.UUID) -> None:
        invalidate_after_commit(self.db, bonus_cache_key(user_id))
