"""Credit ledger backends."""

from kb_engine.boundary.ledger.credit_ledger import (
    CreditLedger,
    DeductionResult,
    InMemoryCreditLedger,
    SQLCreditLedger,
)

__all__ = ["CreditLedger", "DeductionResult", "InMemoryCreditLedger", "SQLCreditLedger"]
