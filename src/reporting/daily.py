"""
Day Grouping and Totals

Groups a reconciled ledger by calendar day in the display timezone and
sums income and expense per day and per month.

The classification is the one the reconciler uses, so a purchase on an
invoice-billed card neither moves the running balance nor shows up in the
day's expenses.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Optional

from src.models.ledger import (
    Account,
    EffectClass,
    ReconciliationResult,
    Transaction,
)
from src.models.report import DayEntry, DayGroup, PeriodTotals
from src.reconciliation.classifier import classify
from src.reconciliation.reconciler import transaction_order


def local_day(instant: datetime, tz: tzinfo) -> date:
    """Calendar day of an instant in the display timezone."""
    return instant.astimezone(tz).date()


def sum_totals(
    transactions: Iterable[Transaction],
    accounts_by_id: Mapping[str, Account],
) -> PeriodTotals:
    """Sum the qualifying income and expense of a set of transactions."""
    income = Decimal("0")
    expense = Decimal("0")
    count = 0

    for tx in transactions:
        effect_class = classify(tx, accounts_by_id)
        if effect_class == EffectClass.INCOME:
            income += tx.amount
        elif effect_class == EffectClass.EXPENSE:
            expense += tx.amount
        else:
            continue
        count += 1

    return PeriodTotals(income=income, expense=expense, transaction_count=count)


def group_by_day(
    transactions: Iterable[Transaction],
    accounts_by_id: Mapping[str, Account],
    tz: tzinfo,
    result: Optional[ReconciliationResult] = None,
    newest_first: bool = False,
) -> list[DayGroup]:
    """
    Group transactions by calendar day.

    Args:
        transactions: Transactions to display
        accounts_by_id: Account metadata for classification
        tz: Display timezone deciding which day an instant falls on
        result: Reconciliation output; supplies running balances and
                divergences, which are placed on their snapshot's day
        newest_first: Order days (and entries within a day) descending

    Returns:
        One DayGroup per day with at least one entry or divergence
    """
    entries_by_day: dict[date, list[Transaction]] = defaultdict(list)
    for tx in sorted(transactions, key=transaction_order):
        entries_by_day[local_day(tx.date, tz)].append(tx)

    divergences_by_day = defaultdict(list)
    balances: dict[str, Decimal] = {}
    if result is not None:
        balances = result.balance_after
        for divergence in result.divergences:
            divergences_by_day[local_day(divergence.date, tz)].append(divergence)

    groups = []
    for day in sorted(set(entries_by_day) | set(divergences_by_day), reverse=newest_first):
        day_transactions = entries_by_day.get(day, [])
        entries = [
            DayEntry(
                transaction=tx,
                effect_class=classify(tx, accounts_by_id),
                balance_after=balances.get(tx.id),
            )
            for tx in day_transactions
        ]
        if newest_first:
            entries.reverse()

        groups.append(DayGroup(
            day=day,
            entries=entries,
            divergences=divergences_by_day.get(day, []),
            totals=sum_totals(day_transactions, accounts_by_id),
        ))

    return groups


def monthly_totals(
    transactions: Iterable[Transaction],
    accounts_by_id: Mapping[str, Account],
    tz: tzinfo,
) -> dict[str, PeriodTotals]:
    """Income/expense totals per month (YYYY-MM), in ascending order."""
    by_month: dict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        by_month[tx.date.astimezone(tz).strftime("%Y-%m")].append(tx)

    return {
        month: sum_totals(by_month[month], accounts_by_id)
        for month in sorted(by_month)
    }
