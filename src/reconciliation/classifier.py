"""
Transaction Effect Classifier

The same transaction means different things depending on who looks at it
and how the accounts involved are configured:

- A purchase on an invoice-billed credit card does not touch cash until
  the invoice is paid, so at purchase time it is transfer-like.
- A top-up of a prepaid card leaves the source account for good, so for
  totals it counts as an expense even though it is a transfer.

DESIGN DECISION: Account configuration is first resolved to a closed
AccountKind (including an explicit UNKNOWN for failed lookups) and the
classification branches on that. No branch ever raises for bad data.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Optional

from src.models.ledger import (
    Account,
    AccountKind,
    AccountType,
    DebitMethod,
    EffectClass,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")

# Kinds whose incoming transfers leave the payer's books as spending
_EXPENSE_DESTINATIONS = frozenset({AccountKind.PREPAID, AccountKind.CREDIT_INVOICE})

# Kinds whose own purchases are settled later through another transaction
_DEFERRED_PURCHASE_KINDS = frozenset({AccountKind.PREPAID, AccountKind.CREDIT_INVOICE})


def resolve_account_kind(account: Optional[Account]) -> AccountKind:
    """
    Resolve account metadata to the behaviour the classifier cares about.

    A CREDIT account without a debit method is billed by invoice, which is
    the default the backend applies when creating credit accounts.
    """
    if account is None:
        return AccountKind.UNKNOWN
    if account.type == AccountType.CASH:
        return AccountKind.CASH
    if account.type == AccountType.PREPAID:
        return AccountKind.PREPAID
    if account.debit_method == DebitMethod.PER_PURCHASE:
        return AccountKind.CREDIT_PER_PURCHASE
    return AccountKind.CREDIT_INVOICE


def lookup_kind(
    account_id: Optional[str],
    accounts_by_id: Mapping[str, Account],
) -> AccountKind:
    """Resolve an account id, UNKNOWN when it is missing from the metadata."""
    if account_id is None:
        return AccountKind.UNKNOWN
    return resolve_account_kind(accounts_by_id.get(account_id))


def classify(
    tx: Transaction,
    accounts_by_id: Mapping[str, Account],
) -> EffectClass:
    """
    Decide how a transaction counts toward displayed income/expense totals.

    Transfer-like transactions are excluded from both sums.
    """
    if tx.type == TransactionType.INCOME:
        return EffectClass.INCOME

    if tx.type == TransactionType.EXPENSE:
        # UNKNOWN falls through to a direct expense, like CASH
        if lookup_kind(tx.account_id, accounts_by_id) in _DEFERRED_PURCHASE_KINDS:
            return EffectClass.TRANSFER
        return EffectClass.EXPENSE

    if tx.type == TransactionType.TRANSFER:
        # UNKNOWN destination stays transfer-like
        if lookup_kind(tx.to_account_id, accounts_by_id) in _EXPENSE_DESTINATIONS:
            return EffectClass.EXPENSE
        return EffectClass.TRANSFER

    return EffectClass.NEUTRAL


def balance_effect(
    tx: Transaction,
    viewpoint_account_id: str,
    accounts_by_id: Mapping[str, Account],
) -> Decimal:
    """
    Signed change a transaction applies to the viewpoint account's
    running balance.

    Args:
        tx: The transaction
        viewpoint_account_id: Account whose balance is being rebuilt
        accounts_by_id: Account metadata, keyed by id

    Returns:
        The delta to add to the running balance
    """
    if tx.type == TransactionType.INCOME:
        return tx.amount

    if tx.type == TransactionType.EXPENSE:
        if classify(tx, accounts_by_id) == EffectClass.TRANSFER:
            return ZERO
        return -tx.amount

    if tx.type == TransactionType.TRANSFER:
        # Expense-like and transfer-like transfers move money the same way
        # relative to the viewpoint; only the totals classification differs.
        delta = ZERO
        if tx.account_id == viewpoint_account_id:
            delta -= tx.amount
        if tx.to_account_id == viewpoint_account_id:
            delta += tx.amount
        return delta

    # UPDATE markers never move the calculated balance
    return ZERO
