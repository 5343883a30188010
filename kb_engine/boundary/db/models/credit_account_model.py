"""
Credit account ORM model.

Prepaid balance per account. The balance column is only ever changed by
single conditional UPDATE statements issued from the credit ledger.

Dependencies: sqlalchemy, kb_engine.boundary.db.base
System role: Persistent credit ledger state
"""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kb_engine.boundary.db.base import Base, TimestampMixin


class CreditAccountModel(Base, TimestampMixin):
    """
    Per-account credit balance and subscription plan.

    Attributes:
        account_id: Account identifier (primary key)
        plan: Subscription plan name used for size limits
        balance: Remaining credits, never negative
    """

    __tablename__ = "credit_accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_credit_accounts_balance_non_negative"),
    )

    account_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    plan: Mapped[str] = mapped_column(String(50), nullable=False, default="free")
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
