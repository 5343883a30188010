"""
Credit ledger.

Prepaid per-account balance gating costly operations. Deduction is a
single atomic decrement-if-sufficient; there is no read-then-write path,
so concurrent requests for one account can never drive the balance
below zero. Refunds are compensation for failed downstream work.

Dependencies: sqlalchemy, pydantic, kb_engine.boundary.db
System role: Credit accounting for parsing jobs and queries
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kb_engine.boundary.db.models.credit_account_model import CreditAccountModel
from kb_engine.core.exceptions import CreditLedgerError

logger = logging.getLogger(__name__)


class DeductionResult(BaseModel):
    """Outcome of a deduction attempt."""

    success: bool
    remaining_balance: int
    amount: int


class CreditLedger(ABC):
    """Per-account prepaid credit balance."""

    @abstractmethod
    async def get_balance(self, account_id: str) -> int:
        """Current balance; 0 for unknown accounts."""

    @abstractmethod
    async def get_plan(self, account_id: str) -> str | None:
        """Subscription plan of the account, None for unknown accounts."""

    @abstractmethod
    async def reserve_and_deduct(
        self,
        account_id: str,
        amount: int,
        reference: str | None = None,
    ) -> DeductionResult:
        """
        Atomically deduct amount if the balance covers it.

        Args:
            account_id: Account to charge
            amount: Credits to deduct (non-negative)
            reference: Job or request id the deduction belongs to

        Returns:
            DeductionResult: success flag and balance after the attempt
        """

    @abstractmethod
    async def refund(
        self,
        account_id: str,
        amount: int,
        reference: str | None = None,
    ) -> int:
        """
        Return credits to an account.

        Returns:
            int: Balance after the refund

        Raises:
            CreditLedgerError: When the refund cannot be applied
        """

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0:
            raise ValueError("Credit amount must be non-negative")


class SQLCreditLedger(CreditLedger):
    """Ledger backed by conditional UPDATE statements on credit_accounts."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_balance(self, account_id: str) -> int:
        stmt = select(CreditAccountModel.balance).where(CreditAccountModel.account_id == account_id)
        async with self._session_factory() as session:
            balance = (await session.execute(stmt)).scalar_one_or_none()
        return balance or 0

    async def get_plan(self, account_id: str) -> str | None:
        stmt = select(CreditAccountModel.plan).where(CreditAccountModel.account_id == account_id)
        async with self._session_factory() as session:
            return (await session.execute(stmt)).scalar_one_or_none()

    async def reserve_and_deduct(
        self,
        account_id: str,
        amount: int,
        reference: str | None = None,
    ) -> DeductionResult:
        self._check_amount(amount)
        if amount == 0:
            return DeductionResult(
                success=True,
                remaining_balance=await self.get_balance(account_id),
                amount=0,
            )

        stmt = (
            update(CreditAccountModel)
            .where(CreditAccountModel.account_id == account_id)
            .where(CreditAccountModel.balance >= amount)
            .values(balance=CreditAccountModel.balance - amount)
            .returning(CreditAccountModel.balance)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_factory() as session, session.begin():
                remaining = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CreditLedgerError(
                f"Credit deduction failed: {e}",
                {"account_id": account_id, "amount": amount, "reference": reference},
            ) from e

        if remaining is None:
            balance = await self.get_balance(account_id)
            logger.info(
                f"{__name__}:reserve_and_deduct - Insufficient balance",
                extra={"account_id": account_id, "amount": amount, "balance": balance},
            )
            return DeductionResult(success=False, remaining_balance=balance, amount=amount)

        logger.info(
            f"{__name__}:reserve_and_deduct - Deducted credits",
            extra={
                "account_id": account_id,
                "amount": amount,
                "remaining": remaining,
                "reference": reference,
            },
        )
        return DeductionResult(success=True, remaining_balance=remaining, amount=amount)

    async def refund(
        self,
        account_id: str,
        amount: int,
        reference: str | None = None,
    ) -> int:
        self._check_amount(amount)
        stmt = (
            update(CreditAccountModel)
            .where(CreditAccountModel.account_id == account_id)
            .values(balance=CreditAccountModel.balance + amount)
            .returning(CreditAccountModel.balance)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_factory() as session, session.begin():
                balance = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CreditLedgerError(
                f"Credit refund failed: {e}",
                {"account_id": account_id, "amount": amount, "reference": reference},
            ) from e

        if balance is None:
            raise CreditLedgerError(
                "Credit account not found",
                {"account_id": account_id, "amount": amount, "reference": reference},
            )
        return balance

    async def open_account(self, account_id: str, balance: int = 0, plan: str = "free") -> None:
        """Create an account row (used by provisioning and tests)."""
        async with self._session_factory() as session, session.begin():
            session.add(CreditAccountModel(account_id=account_id, balance=balance, plan=plan))


class InMemoryCreditLedger(CreditLedger):
    """
    Process-local ledger serializing each account behind its own asyncio.Lock.

    No I/O happens while a lock is held.
    """

    def __init__(
        self,
        balances: dict[str, int] | None = None,
        plans: dict[str, str] | None = None,
    ) -> None:
        self._balances: dict[str, int] = dict(balances or {})
        self._plans: dict[str, str] = dict(plans or {})
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_balance(self, account_id: str) -> int:
        return self._balances.get(account_id, 0)

    async def get_plan(self, account_id: str) -> str | None:
        if account_id not in self._balances and account_id not in self._plans:
            return None
        return self._plans.get(account_id, "free")

    async def reserve_and_deduct(
        self,
        account_id: str,
        amount: int,
        reference: str | None = None,
    ) -> DeductionResult:
        self._check_amount(amount)
        async with self._locks[account_id]:
            balance = self._balances.get(account_id, 0)
            if balance < amount:
                return DeductionResult(success=False, remaining_balance=balance, amount=amount)
            self._balances[account_id] = balance - amount
            return DeductionResult(
                success=True,
                remaining_balance=self._balances[account_id],
                amount=amount,
            )

    async def refund(
        self,
        account_id: str,
        amount: int,
        reference: str | None = None,
    ) -> int:
        self._check_amount(amount)
        async with self._locks[account_id]:
            if account_id not in self._balances:
                raise CreditLedgerError("Credit account not found", {"account_id": account_id})
            self._balances[account_id] += amount
            return self._balances[account_id]
