"""Balance reconciliation package."""

from src.reconciliation.classifier import (
    balance_effect,
    classify,
    lookup_kind,
    resolve_account_kind,
)
from src.reconciliation.reconciler import (
    DEFAULT_TOLERANCE,
    BalanceReconciler,
    index_accounts,
    reconcile_balances,
    snapshot_order,
    transaction_order,
)

__all__ = [
    # Classifier
    "balance_effect",
    "classify",
    "lookup_kind",
    "resolve_account_kind",
    # Reconciler
    "DEFAULT_TOLERANCE",
    "BalanceReconciler",
    "index_accounts",
    "reconcile_balances",
    "snapshot_order",
    "transaction_order",
]
