"""
Budget Reconciliation - Source Package

Rebuilds account running balances from a transaction ledger and checks
them against the balances users record by hand.

DESIGN PRINCIPLES:
1. Recorded balances are ground truth
2. Reconciliation is a pure computation, recomputed on every render
3. Bad data degrades the result; it never aborts it
4. No silent corrections: every divergence is reported
5. The ledger source is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Reconciliation Team"
