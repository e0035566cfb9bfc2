"""
Reporting Models

Shapes handed to the rendering layer: transactions grouped by calendar
day with their running balance, per-period totals, and the monthly
balance trend of the annual review.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from src.models.ledger import (
    Divergence,
    EffectClass,
    LedgerValidationResult,
    ReconciliationResult,
    Transaction,
)


class PeriodTotals(BaseModel):
    """
    Income and expense sums for a day or a month.

    Only INCOME- and EXPENSE-classified transactions count. Transfer-like
    ones move money between the user's own accounts and are left out.
    """

    income: Decimal = Field(default=Decimal("0"), ge=0)
    expense: Decimal = Field(default=Decimal("0"), ge=0)
    transaction_count: int = Field(
        default=0,
        ge=0,
        description="Transactions that contributed to the sums"
    )

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class DayEntry(BaseModel):
    """A transaction annotated for display."""

    transaction: Transaction
    effect_class: EffectClass
    balance_after: Optional[Decimal] = Field(
        default=None,
        description="Running balance after this transaction, if reconciled"
    )


class DayGroup(BaseModel):
    """All entries and divergences falling on one calendar day."""

    day: date
    entries: list[DayEntry] = Field(default_factory=list)
    divergences: list[Divergence] = Field(default_factory=list)
    totals: PeriodTotals = Field(default_factory=PeriodTotals)

    @property
    def month_key(self) -> str:
        """Month this day belongs to, as YYYY-MM."""
        return self.day.strftime("%Y-%m")

    @property
    def closing_balance(self) -> Optional[Decimal]:
        """Running balance after the day's last reconciled entry."""
        reconciled = [e for e in self.entries if e.balance_after is not None]
        if not reconciled:
            return None
        # Entries may be listed newest first
        last = max(reconciled, key=lambda e: (e.transaction.date, e.transaction.id))
        return last.balance_after


class MonthlyTrend(BaseModel):
    """
    One month of the annual review.

    `divergence` is only set for months in which a new balance snapshot
    was recorded: it compares that snapshot with the balance expected from
    the previous snapshot plus the net of the months since.
    """

    month: int = Field(..., ge=1, le=12)
    income: Decimal
    expense: Decimal
    net: Decimal
    actual_balance: Decimal = Field(
        ...,
        description="Latest recorded balance on or before month end"
    )
    calculated_balance: Decimal = Field(
        ...,
        description="Balance expected from the last snapshot plus monthly nets"
    )
    divergence: Optional[Decimal] = None
    has_actual_data: bool = Field(
        default=False,
        description="Was any snapshot recorded up to this month?"
    )


class WindowReconciliation(BaseModel):
    """Everything the transaction table needs for one account and window."""

    result: ReconciliationResult
    validation: LedgerValidationResult
    days: list[DayGroup] = Field(default_factory=list)
    gap_transaction_count: int = Field(
        default=0,
        ge=0,
        description="Transactions replayed between the anchor and the window"
    )
