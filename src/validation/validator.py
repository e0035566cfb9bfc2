"""
Ledger Data-Quality Validation

Reconciliation always produces a best-effort result; it degrades instead of
failing when the data is imperfect. This validator is where the
imperfections get reported, so the user can see why a balance looks off.

Checks, by stage:

STAGE 1 - STRUCTURAL:
- Duplicate transaction ids
- Snapshots belonging to another account

STAGE 2 - REFERENTIAL:
- Transactions referencing accounts missing from the metadata
- Transactions not touching the reconciled account
- Snapshots sharing an instant
- No snapshots at all

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from collections import Counter
from collections.abc import Mapping, Sequence

from src.models.ledger import (
    Account,
    BalanceSnapshot,
    LedgerValidationResult,
    Transaction,
    ValidationIssue,
)


class LedgerValidator:
    """
    Validates the inputs of a reconciliation run.

    Stage 1: Structural issues (errors)
    Stage 2: Referential issues (warnings and info)
    """

    def _validate_structure(
        self,
        viewpoint_account_id: str,
        transactions: Sequence[Transaction],
        snapshots: Sequence[BalanceSnapshot],
    ) -> list[ValidationIssue]:
        """
        Stage 1: records that make the ledger itself ambiguous.

        Returns: list_of_issues
        """
        issues = []

        id_counts = Counter(tx.id for tx in transactions)
        for tx_id, count in sorted(id_counts.items()):
            if count > 1:
                issues.append(ValidationIssue(
                    field="id",
                    issue_type="duplicate_transaction",
                    message=f"Transaction {tx_id} appears {count} times",
                    severity="error",
                    record_id=tx_id,
                ))

        for snapshot in snapshots:
            if snapshot.account_id is not None and snapshot.account_id != viewpoint_account_id:
                issues.append(ValidationIssue(
                    field="account_id",
                    issue_type="foreign_snapshot",
                    message=(
                        f"Balance update {snapshot.id} belongs to account "
                        f"{snapshot.account_id}, not {viewpoint_account_id}"
                    ),
                    severity="error",
                    record_id=snapshot.id,
                ))

        return issues

    def _validate_references(
        self,
        viewpoint_account_id: str,
        transactions: Sequence[Transaction],
        snapshots: Sequence[BalanceSnapshot],
        accounts_by_id: Mapping[str, Account],
    ) -> list[ValidationIssue]:
        """
        Stage 2: records the reconciler can handle, but only by assumption.

        Returns: list_of_issues
        """
        issues = []

        for tx in transactions:
            for field, account_id, assumption in (
                ("account_id", tx.account_id, "treated as a cash account"),
                ("to_account_id", tx.to_account_id, "treated as a plain transfer"),
            ):
                if account_id is not None and account_id not in accounts_by_id:
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="unknown_account",
                        message=(
                            f"Transaction {tx.id} references unknown account {account_id}; "
                            f"{assumption}"
                        ),
                        severity="warning",
                        record_id=tx.id,
                    ))

            if not tx.touches(viewpoint_account_id):
                issues.append(ValidationIssue(
                    field="account_id",
                    issue_type="unrelated_transaction",
                    message=f"Transaction {tx.id} does not involve account {viewpoint_account_id}",
                    severity="warning",
                    record_id=tx.id,
                ))

        if not snapshots:
            issues.append(ValidationIssue(
                field="snapshots",
                issue_type="missing_anchor",
                message="No balance updates recorded; running balance can't be shown",
                severity="info",
            ))

        instant_counts = Counter(snapshot.date for snapshot in snapshots)
        for instant, count in sorted(instant_counts.items()):
            if count > 1:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="duplicate_snapshot_instant",
                    message=(
                        f"{count} balance updates recorded at {instant.isoformat()}; "
                        "applied in id order"
                    ),
                    severity="info",
                ))

        return issues

    def validate(
        self,
        viewpoint_account_id: str,
        transactions: Sequence[Transaction],
        snapshots: Sequence[BalanceSnapshot],
        accounts_by_id: Mapping[str, Account],
    ) -> LedgerValidationResult:
        """
        Run both validation stages.

        Args:
            viewpoint_account_id: Account being reconciled
            transactions: Window and gap transactions
            snapshots: Balance snapshots of the account
            accounts_by_id: Account metadata

        Returns:
            LedgerValidationResult with all issues found
        """
        issues = self._validate_structure(viewpoint_account_id, transactions, snapshots)
        issues.extend(self._validate_references(
            viewpoint_account_id, transactions, snapshots, accounts_by_id
        ))

        return LedgerValidationResult(
            viewpoint_account_id=viewpoint_account_id,
            can_reconcile=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def get_user_friendly_summary(self, result: LedgerValidationResult) -> str:
        """Summarize the validation result in plain language."""
        if not result.issues:
            return "All balance data looks consistent."

        lines = []

        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("Some records conflict and balances may be wrong:")
            for issue in errors:
                lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        notes = [issue for issue in result.issues if issue.severity == "info"]
        if notes:
            if lines:
                lines.append("")
            for issue in notes:
                lines.append(f"   • {issue.message}")

        return "\n".join(lines)
