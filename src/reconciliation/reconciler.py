"""
Balance Reconciliation

Rebuilds the running balance of one account from its transactions and
checks it against the balance snapshots the user recorded by hand.

How the scan works:
1. Sort transactions and snapshots by date (ties broken by id)
2. Anchor on the last snapshot before the window, carried forward through
   the gap transactions, or on the first snapshot inside the window,
   walked back to the window start
3. Scan forward, applying each transaction's effect
4. At every snapshot, compare and resynchronize to the recorded amount

Snapshots are authoritative. A mismatch is reported as a Divergence and
the running total continues from the recorded amount, so one missing entry
produces exactly one divergence instead of shifting every later balance.

The reconciler is a pure function of its inputs. It is cheap enough to
call on every render and nothing depends on caching it.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Optional, Union

import structlog

from src.config import get_settings
from src.models.ledger import (
    Account,
    AnchorCase,
    BalanceSnapshot,
    Divergence,
    ReconciliationResult,
    Transaction,
)
from src.reconciliation.classifier import balance_effect


logger = structlog.get_logger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")

AccountsArg = Union[Mapping[str, Account], Iterable[Account]]


def transaction_order(tx: Transaction) -> tuple:
    """Sort key for transactions: date, then id."""
    return (tx.date, tx.id)


def snapshot_order(snapshot: BalanceSnapshot) -> tuple:
    """Sort key for snapshots: date, then id for identical instants."""
    return (snapshot.date, snapshot.id)


def index_accounts(accounts: AccountsArg) -> dict[str, Account]:
    """Key account metadata by id."""
    if isinstance(accounts, Mapping):
        return dict(accounts)
    return {account.id: account for account in accounts}


def reconcile_balances(
    viewpoint_account_id: str,
    transactions: Iterable[Transaction],
    snapshots: Iterable[BalanceSnapshot],
    accounts_by_id: Mapping[str, Account],
    gap_transactions: Iterable[Transaction] = (),
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> ReconciliationResult:
    """
    Reconcile one account's running balance against its snapshots.

    Args:
        viewpoint_account_id: Account whose balance is being rebuilt
        transactions: Window transactions touching the account, any order
        snapshots: All balance snapshots of the account, any order
        accounts_by_id: Account metadata used to classify effects
        gap_transactions: Transactions between the last snapshot before the
            window and the window start (fetched by the caller)
        tolerance: Largest difference not reported as a divergence

    Returns:
        ReconciliationResult with balances after each transaction and the
        divergences found, both in ascending date order
    """
    ordered = sorted(transactions, key=transaction_order)
    if not ordered:
        return ReconciliationResult(
            viewpoint_account_id=viewpoint_account_id,
            anchor_case=AnchorCase.EMPTY_WINDOW,
        )

    history = sorted(snapshots, key=snapshot_order)
    if not history:
        logger.debug(
            "reconciliation_without_snapshots",
            account_id=viewpoint_account_id,
            transaction_count=len(ordered),
        )
        return ReconciliationResult(
            viewpoint_account_id=viewpoint_account_id,
            anchor_case=AnchorCase.NO_SNAPSHOTS,
        )

    def effect(tx: Transaction) -> Decimal:
        return balance_effect(tx, viewpoint_account_id, accounts_by_id)

    window_start = ordered[0].date
    window_end = ordered[-1].date
    before = [s for s in history if s.date < window_start]
    in_range = [s for s in history if s.date >= window_start]

    if before:
        anchor = before[-1]
        anchor_case = AnchorCase.BEFORE_WINDOW
        balance = anchor.amount
        for tx in sorted(gap_transactions, key=transaction_order):
            if anchor.date < tx.date < window_start:
                balance += effect(tx)
    else:
        # Undo every window transaction that precedes the first snapshot
        anchor = in_range[0]
        anchor_case = AnchorCase.WITHIN_WINDOW
        balance = anchor.amount
        for tx in reversed(ordered):
            if tx.date < anchor.date:
                balance -= effect(tx)

    opening_balance = balance
    logger.debug(
        "reconciliation_anchored",
        account_id=viewpoint_account_id,
        anchor_case=anchor_case.value,
        anchor_id=anchor.id,
        opening_balance=str(opening_balance),
    )

    balance_after: dict[str, Decimal] = {}
    divergences: list[Divergence] = []
    cursor = 0

    def resync(calculated: Decimal, snapshot: BalanceSnapshot) -> Decimal:
        difference = abs(calculated - snapshot.amount)
        if difference > tolerance:
            divergences.append(Divergence(
                id=snapshot.id,
                date=snapshot.date,
                amount=difference,
                calculated_balance=calculated,
                actual_balance=snapshot.amount,
            ))
        return snapshot.amount

    for tx in ordered:
        while cursor < len(in_range) and in_range[cursor].date <= tx.date:
            balance = resync(balance, in_range[cursor])
            cursor += 1
        balance += effect(tx)
        balance_after[tx.id] = balance

    # Snapshots past the last transaction belong to a later window
    while cursor < len(in_range) and in_range[cursor].date <= window_end:
        balance = resync(balance, in_range[cursor])
        cursor += 1

    return ReconciliationResult(
        viewpoint_account_id=viewpoint_account_id,
        anchor_case=anchor_case,
        anchor=anchor,
        opening_balance=opening_balance,
        balance_after=balance_after,
        divergences=divergences,
    )


class BalanceReconciler:
    """
    Reconciles account ledgers against recorded balance snapshots.

    Holds the account metadata and tolerance so callers can reconcile
    several accounts (or re-render the same one) with one instance.

    GUARANTEES:
    - Never mutates its inputs
    - Same inputs, in any order, give the same result
    - Never raises for missing metadata or missing snapshots
    """

    def __init__(
        self,
        accounts: AccountsArg = (),
        tolerance: Optional[Decimal] = None,
    ):
        """
        Initialize the reconciler.

        Args:
            accounts: Account metadata, as a list or keyed by id
            tolerance: Allowed difference between calculated and recorded
                       balance. Defaults to the configured tolerance.
        """
        self._accounts_by_id = index_accounts(accounts)
        if tolerance is None:
            tolerance = get_settings().reconciliation.tolerance
        self.tolerance = tolerance

    @property
    def accounts_by_id(self) -> dict[str, Account]:
        return dict(self._accounts_by_id)

    def reconcile(
        self,
        viewpoint_account_id: str,
        transactions: Iterable[Transaction],
        snapshots: Iterable[BalanceSnapshot],
        gap_transactions: Iterable[Transaction] = (),
    ) -> ReconciliationResult:
        """Reconcile one account. See `reconcile_balances`."""
        return reconcile_balances(
            viewpoint_account_id,
            transactions,
            snapshots,
            self._accounts_by_id,
            gap_transactions=gap_transactions,
            tolerance=self.tolerance,
        )

    def effect_of(self, tx: Transaction, viewpoint_account_id: str) -> Decimal:
        """Signed balance effect of a single transaction on an account."""
        return balance_effect(tx, viewpoint_account_id, self._accounts_by_id)
