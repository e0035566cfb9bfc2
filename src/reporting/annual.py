"""
Annual Review Balance Trend

Month-by-month view of a year: income, expense and net from the ledger,
the balance the user actually recorded, and the balance the ledger says
they should have had.

When a new snapshot lands in a month, the difference between it and the
expected balance is the month's divergence: money that moved without a
matching transaction.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Optional

from src.models.ledger import Account, BalanceSnapshot, Transaction
from src.models.report import MonthlyTrend
from src.reconciliation.reconciler import snapshot_order
from src.reporting.daily import sum_totals


def _month_start(year: int, month: int, tz: tzinfo) -> datetime:
    if month > 12:
        year, month = year + 1, 1
    return datetime(year, month, 1, tzinfo=tz)


def annual_balance_trend(
    year: int,
    transactions: Iterable[Transaction],
    snapshots: Iterable[BalanceSnapshot],
    accounts_by_id: Mapping[str, Account],
    tz: tzinfo,
) -> list[MonthlyTrend]:
    """
    Build the twelve monthly trend rows of a year.

    Args:
        year: Calendar year in the display timezone
        transactions: Transactions of the year (any order)
        snapshots: Balance snapshots of the reviewed accounts, any dates
        accounts_by_id: Account metadata for income/expense classification
        tz: Display timezone deciding month boundaries

    Returns:
        Twelve MonthlyTrend rows, January first
    """
    by_month: dict[int, list[Transaction]] = {month: [] for month in range(1, 13)}
    for tx in transactions:
        local = tx.date.astimezone(tz)
        if local.year == year:
            by_month[local.month].append(tx)

    history = sorted(snapshots, key=snapshot_order)
    totals = [sum_totals(by_month[month], accounts_by_id) for month in range(1, 13)]
    nets = [t.net for t in totals]

    # Month index of the last adopted snapshot; -1 means before January
    anchor_index: Optional[int] = None
    anchor_value = Decimal("0")
    anchor_date: Optional[datetime] = None

    rows: list[MonthlyTrend] = []
    for index, month in enumerate(range(1, 13)):
        start = _month_start(year, month, tz)
        end = _month_start(year, month + 1, tz)

        latest = None
        for snapshot in history:
            if snapshot.date >= end:
                break
            latest = snapshot

        is_newer = latest is not None and (anchor_date is None or latest.date > anchor_date)
        recorded_this_month = is_newer and latest.date >= start

        # Only January can see a snapshot from before the year; later months
        # already adopted every earlier snapshot
        if index == 0 and is_newer and not recorded_this_month:
            anchor_index, anchor_value, anchor_date = -1, latest.amount, latest.date

        if anchor_index is None:
            calculated = sum(nets[:index + 1], Decimal("0"))
        else:
            calculated = anchor_value + sum(nets[anchor_index + 1:index + 1], Decimal("0"))

        if latest is not None:
            actual = latest.amount
        else:
            actual = rows[-1].actual_balance if rows else Decimal("0")

        divergence = actual - calculated if recorded_this_month else None

        if recorded_this_month:
            anchor_index, anchor_value, anchor_date = index, latest.amount, latest.date

        rows.append(MonthlyTrend(
            month=month,
            income=totals[index].income,
            expense=totals[index].expense,
            net=nets[index],
            actual_balance=actual,
            calculated_balance=calculated,
            divergence=divergence,
            has_actual_data=latest is not None,
        ))

    return rows
