"""Reporting package: day grouping, period totals and the annual trend."""

from src.reporting.annual import annual_balance_trend
from src.reporting.daily import group_by_day, local_day, monthly_totals, sum_totals

__all__ = [
    "annual_balance_trend",
    "group_by_day",
    "local_day",
    "monthly_totals",
    "sum_totals",
]
