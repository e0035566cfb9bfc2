"""
Ledger Models for Balance Reconciliation

These models describe the data fetched from the budget backend
(transactions, accounts, balance snapshots) and the data derived from it
(divergences, reconciliation results).

DESIGN DECISION: Fetched records are frozen. The reconciler reads them,
never mutates them, and always returns fresh result objects.

Amounts are Decimal end to end. A running balance rebuilt from Decimal
deltas lands exactly on the snapshot it was derived from, so rounding can
never produce a spurious divergence.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def assume_utc(value: datetime) -> datetime:
    """Naive timestamps from the backend are UTC instants."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Instant = Annotated[datetime, AfterValidator(assume_utc)]


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """
    Transaction types as sent by the backend.

    UPDATE is a synthetic balance-snapshot marker that can show up inline
    in a ledger. It never moves a balance.
    """
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"
    UPDATE = "UPDATE"


class AccountType(str, Enum):
    """Account types."""
    CASH = "CASH"
    CREDIT = "CREDIT"
    PREPAID = "PREPAID"


class DebitMethod(str, Enum):
    """
    How a credit account is debited.

    INVOICE: purchases hit the cash balance only when the invoice is paid.
    PER_PURCHASE: every purchase is debited immediately.
    """
    INVOICE = "INVOICE"
    PER_PURCHASE = "PER_PURCHASE"


class AccountKind(str, Enum):
    """
    Resolved account behaviour used by the effect classifier.

    UNKNOWN is what a failed account lookup resolves to.
    """
    CASH = "cash"
    CREDIT_PER_PURCHASE = "credit_per_purchase"
    CREDIT_INVOICE = "credit_invoice"
    PREPAID = "prepaid"
    UNKNOWN = "unknown"


class EffectClass(str, Enum):
    """How a transaction counts toward income/expense totals."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"  # Excluded from income and expense sums
    NEUTRAL = "neutral"    # UPDATE markers


class AnchorCase(str, Enum):
    """Which starting point the forward scan used."""
    BEFORE_WINDOW = "before_window"  # Last snapshot before the first transaction
    WITHIN_WINDOW = "within_window"  # First snapshot, walked back to the window start
    NO_SNAPSHOTS = "no_snapshots"    # Nothing to anchor on
    EMPTY_WINDOW = "empty_window"    # No transactions to reconcile


# =============================================================================
# FETCHED RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A ledger entry.

    The amount is always a non-negative magnitude. Direction comes from
    the type and from which account is looking at the transaction.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )

    id: str = Field(..., min_length=1)
    date: Instant = Field(
        ...,
        description="Instant of the transaction (ordering key)"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative magnitude"
    )
    account_id: str = Field(
        ...,
        alias="accountId",
        description="Account the transaction is recorded against (source for transfers)"
    )
    to_account_id: Optional[str] = Field(
        default=None,
        alias="toAccountId",
        description="Destination account, TRANSFER only"
    )
    description: Optional[str] = None

    @model_validator(mode="after")
    def validate_destination(self) -> "Transaction":
        """Only transfers carry a destination account."""
        if self.type == TransactionType.TRANSFER and not self.to_account_id:
            raise ValueError("Transfer requires a destination account")
        if self.type != TransactionType.TRANSFER and self.to_account_id:
            raise ValueError("Only transfers can have a destination account")
        return self

    def touches(self, account_id: str) -> bool:
        """Check if this transaction involves the account on either side."""
        return account_id in (self.account_id, self.to_account_id)


class Account(BaseModel):
    """Account metadata. Read-only for reconciliation."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    id: str = Field(..., min_length=1)
    type: AccountType
    debit_method: Optional[DebitMethod] = Field(
        default=None,
        alias="debitMethod",
        description="Only meaningful for CREDIT accounts"
    )
    name: Optional[str] = None


class BalanceSnapshot(BaseModel):
    """
    A balance update: the user-entered, authoritative balance of an
    account at an instant.

    Snapshots are ground truth. They are never derived from transactions.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    id: str = Field(..., min_length=1)
    date: Instant
    amount: Decimal = Field(
        ...,
        description="Recorded balance, negative allowed"
    )
    account_id: Optional[str] = Field(
        default=None,
        alias="accountId",
    )


# =============================================================================
# DERIVED RESULTS
# =============================================================================

class Divergence(BaseModel):
    """
    A snapshot whose recorded amount disagrees with the balance calculated
    from transaction deltas.

    Divergences are informational. The user is expected to look for the
    missing entry (an untracked cash withdrawal, a forgotten fee).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        ...,
        description="ID of the snapshot that exposed the divergence"
    )
    date: datetime
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Absolute difference between calculated and actual"
    )
    calculated_balance: Decimal = Field(..., alias="calculatedBalance")
    actual_balance: Decimal = Field(..., alias="actualBalance")

    @property
    def signed_difference(self) -> Decimal:
        """Positive when the account holds more than the ledger explains."""
        return self.actual_balance - self.calculated_balance


class ReconciliationResult(BaseModel):
    """
    Output of one reconciliation run for a single account.

    `balance_after` is keyed by transaction id, in ascending date order.
    `divergences` are in ascending snapshot date order.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    viewpoint_account_id: str
    anchor_case: AnchorCase
    anchor: Optional[BalanceSnapshot] = Field(
        default=None,
        description="Snapshot the scan was anchored on"
    )
    opening_balance: Optional[Decimal] = Field(
        default=None,
        description="Balance right before the first window transaction"
    )
    balance_after: dict[str, Decimal] = Field(
        default_factory=dict,
        alias="balanceAfter",
    )
    divergences: list[Divergence] = Field(default_factory=list)

    @property
    def has_balances(self) -> bool:
        """False when no running balance could be computed."""
        return bool(self.balance_after)

    @property
    def closing_balance(self) -> Optional[Decimal]:
        """Balance after the last window transaction."""
        if not self.balance_after:
            return None
        return list(self.balance_after.values())[-1]

    @property
    def divergence_count(self) -> int:
        return len(self.divergences)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single data-quality issue found in a ledger."""

    field: str = Field(
        ...,
        description="Record field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_account', 'duplicate_transaction')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    record_id: Optional[str] = Field(
        default=None,
        description="ID of the offending transaction or snapshot"
    )


class LedgerValidationResult(BaseModel):
    """
    Data-quality report for a ledger about to be reconciled.

    IMPORTANT: Reconciliation runs regardless. Issues are surfaced,
    never silently fixed.
    """

    viewpoint_account_id: str
    can_reconcile: bool = Field(
        ...,
        description="False when error-level issues exist"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
