"""
Data Models Package

This package contains all Pydantic models used in balance reconciliation.
All data flowing through the system must conform to these schemas.
"""

from src.models.ledger import (
    Account,
    AccountKind,
    AccountType,
    AnchorCase,
    BalanceSnapshot,
    DebitMethod,
    Divergence,
    EffectClass,
    LedgerValidationResult,
    ReconciliationResult,
    Transaction,
    TransactionType,
    ValidationIssue,
)
from src.models.report import (
    DayEntry,
    DayGroup,
    MonthlyTrend,
    PeriodTotals,
    WindowReconciliation,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountKind",
    "AccountType",
    "AnchorCase",
    "BalanceSnapshot",
    "DebitMethod",
    "Divergence",
    "EffectClass",
    "LedgerValidationResult",
    "ReconciliationResult",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    # Report models
    "DayEntry",
    "DayGroup",
    "MonthlyTrend",
    "PeriodTotals",
    "WindowReconciliation",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
