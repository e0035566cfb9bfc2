"""
Shared fixtures for reconciliation tests.

Dates default to January 2024, noon UTC, so most tests only name a day.
"""

import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.models.ledger import (
    Account,
    AccountType,
    BalanceSnapshot,
    DebitMethod,
    Transaction,
    TransactionType,
)


def _instant(day: int, month: int, year: int, hour: int) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def accounts_by_id() -> dict[str, Account]:
    """One account of every kind the classifier distinguishes."""
    accounts = [
        Account(id="A1", type=AccountType.CASH, name="Checking"),
        Account(id="A2", type=AccountType.CASH, name="Savings"),
        Account(id="CC", type=AccountType.CREDIT, debit_method=DebitMethod.INVOICE),
        Account(id="CP", type=AccountType.CREDIT, debit_method=DebitMethod.PER_PURCHASE),
        Account(id="PP", type=AccountType.PREPAID, name="Meal card"),
    ]
    return {account.id: account for account in accounts}


@pytest.fixture
def make_tx():
    """Factory for transactions with sequential ids."""
    counter = itertools.count(1)

    def _make(
        day: int,
        type: str,
        amount,
        account: str = "A1",
        to: str = None,
        month: int = 1,
        year: int = 2024,
        hour: int = 12,
        id: str = None,
    ) -> Transaction:
        return Transaction(
            id=id or f"tx{next(counter)}",
            date=_instant(day, month, year, hour),
            type=TransactionType(type),
            amount=Decimal(str(amount)),
            account_id=account,
            to_account_id=to,
        )

    return _make


@pytest.fixture
def make_snapshot():
    """Factory for balance snapshots with sequential ids."""
    counter = itertools.count(1)

    def _make(
        day: int,
        amount,
        month: int = 1,
        year: int = 2024,
        hour: int = 12,
        id: str = None,
        account: str = None,
    ) -> BalanceSnapshot:
        return BalanceSnapshot(
            id=id or f"snap{next(counter)}",
            date=_instant(day, month, year, hour),
            amount=Decimal(str(amount)),
            account_id=account,
        )

    return _make
