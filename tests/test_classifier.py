"""
Tests for the transaction effect classifier.

Each account kind is checked from the viewpoint of the account whose
running balance is being rebuilt.
"""

from decimal import Decimal

import pytest

from src.models.ledger import Account, AccountKind, AccountType, EffectClass
from src.reconciliation.classifier import (
    balance_effect,
    classify,
    lookup_kind,
    resolve_account_kind,
)


class TestAccountKind:
    """Tests for resolving account metadata."""

    def test_missing_account_is_unknown(self):
        """A failed lookup resolves to the explicit UNKNOWN kind."""
        assert resolve_account_kind(None) == AccountKind.UNKNOWN
        assert lookup_kind("nope", {}) == AccountKind.UNKNOWN
        assert lookup_kind(None, {}) == AccountKind.UNKNOWN

    def test_credit_without_debit_method_is_invoice(self):
        """Credit accounts default to invoice billing."""
        account = Account(id="C", type=AccountType.CREDIT)
        assert resolve_account_kind(account) == AccountKind.CREDIT_INVOICE

    def test_kinds(self, accounts_by_id):
        """Every configured account resolves to its kind."""
        assert lookup_kind("A1", accounts_by_id) == AccountKind.CASH
        assert lookup_kind("CC", accounts_by_id) == AccountKind.CREDIT_INVOICE
        assert lookup_kind("CP", accounts_by_id) == AccountKind.CREDIT_PER_PURCHASE
        assert lookup_kind("PP", accounts_by_id) == AccountKind.PREPAID


class TestIncomeAndExpense:
    """Tests for INCOME and EXPENSE transactions."""

    def test_income_credits_viewpoint(self, make_tx, accounts_by_id):
        tx = make_tx(5, "INCOME", "50.00")
        assert balance_effect(tx, "A1", accounts_by_id) == Decimal("50.00")
        assert classify(tx, accounts_by_id) == EffectClass.INCOME

    def test_cash_expense_debits(self, make_tx, accounts_by_id):
        tx = make_tx(5, "EXPENSE", "200")
        assert balance_effect(tx, "A1", accounts_by_id) == Decimal("-200")
        assert classify(tx, accounts_by_id) == EffectClass.EXPENSE

    def test_invoice_credit_expense_is_deflected(self, make_tx, accounts_by_id):
        """Purchases on an invoice-billed card don't move its balance."""
        tx = make_tx(5, "EXPENSE", "200", account="CC")
        assert balance_effect(tx, "CC", accounts_by_id) == Decimal("0")
        assert classify(tx, accounts_by_id) == EffectClass.TRANSFER

    def test_per_purchase_credit_expense_debits(self, make_tx, accounts_by_id):
        tx = make_tx(5, "EXPENSE", "80", account="CP")
        assert balance_effect(tx, "CP", accounts_by_id) == Decimal("-80")
        assert classify(tx, accounts_by_id) == EffectClass.EXPENSE

    def test_prepaid_expense_is_deflected(self, make_tx, accounts_by_id):
        tx = make_tx(5, "EXPENSE", "30", account="PP")
        assert balance_effect(tx, "PP", accounts_by_id) == Decimal("0")
        assert classify(tx, accounts_by_id) == EffectClass.TRANSFER

    def test_unknown_account_expense_treated_as_cash(self, make_tx, accounts_by_id):
        """An expense on an account missing from the metadata debits directly."""
        tx = make_tx(5, "EXPENSE", "15", account="GONE")
        assert balance_effect(tx, "GONE", accounts_by_id) == Decimal("-15")
        assert classify(tx, accounts_by_id) == EffectClass.EXPENSE


class TestTransfers:
    """Tests for TRANSFER transactions."""

    def test_cash_transfer_is_neutral_across_pair(self, make_tx, accounts_by_id):
        """Source loses what destination gains."""
        tx = make_tx(5, "TRANSFER", "100", account="A1", to="A2")
        source = balance_effect(tx, "A1", accounts_by_id)
        destination = balance_effect(tx, "A2", accounts_by_id)

        assert source == Decimal("-100")
        assert destination == Decimal("100")
        assert source + destination == 0
        assert classify(tx, accounts_by_id) == EffectClass.TRANSFER

    def test_transfer_does_not_affect_bystander(self, make_tx, accounts_by_id):
        tx = make_tx(5, "TRANSFER", "100", account="A1", to="A2")
        assert balance_effect(tx, "CP", accounts_by_id) == Decimal("0")

    @pytest.mark.parametrize("destination", ["PP", "CC"])
    def test_transfer_to_prepaid_or_invoice_card_is_expense_like(
        self, make_tx, accounts_by_id, destination
    ):
        """Topping up a prepaid card or paying an invoice counts as spending."""
        tx = make_tx(5, "TRANSFER", "300", account="A1", to=destination)
        assert classify(tx, accounts_by_id) == EffectClass.EXPENSE
        assert balance_effect(tx, "A1", accounts_by_id) == Decimal("-300")
        assert balance_effect(tx, destination, accounts_by_id) == Decimal("300")

    def test_transfer_to_per_purchase_card_is_transfer_like(self, make_tx, accounts_by_id):
        tx = make_tx(5, "TRANSFER", "300", account="A1", to="CP")
        assert classify(tx, accounts_by_id) == EffectClass.TRANSFER

    def test_transfer_to_unknown_account_is_transfer_like(self, make_tx, accounts_by_id):
        tx = make_tx(5, "TRANSFER", "40", account="A1", to="GONE")
        assert classify(tx, accounts_by_id) == EffectClass.TRANSFER
        assert balance_effect(tx, "A1", accounts_by_id) == Decimal("-40")


class TestUpdateMarkers:
    """Tests for synthetic UPDATE entries."""

    def test_update_never_moves_balance(self, make_tx, accounts_by_id):
        tx = make_tx(5, "UPDATE", "999")
        assert balance_effect(tx, "A1", accounts_by_id) == Decimal("0")
        assert classify(tx, accounts_by_id) == EffectClass.NEUTRAL


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
