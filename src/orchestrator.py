"""
Reconciliation Orchestrator

This module ties the components together and defines the end-to-end flows:
1. Window reconciliation (fetch → gap fetch → validate → reconcile → group by day)
2. Annual review (fetch the year → monthly totals → balance trend)

DESIGN DECISION: The reconciler itself never fetches anything. Finding
the anchor snapshot and fetching the gap transactions behind it is this
module's job, so the computation stays pure and the I/O stays here.

Every run is audited under one correlation ID.
"""

from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import Optional, TypeVar
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.audit import AuditLogger, create_correlation_id
from src.config import ReconciliationSettings, get_settings
from src.models.ledger import Account, BalanceSnapshot, Transaction, assume_utc
from src.models.report import MonthlyTrend, WindowReconciliation
from src.reconciliation import BalanceReconciler, index_accounts, snapshot_order
from src.reporting import annual_balance_trend, group_by_day
from src.services.storage import (
    AccountNotFoundError,
    InMemoryAuditStorage,
    LedgerSourceError,
    LedgerSourceInterface,
    SourceUnavailableError,
)
from src.validation import LedgerValidator


T = TypeVar("T")


class ReconciliationFlow:
    """
    Orchestrates reconciliation against a ledger source.

    Flow for one account and window:
    1. Fetch account metadata, window transactions and snapshots
    2. Find the last snapshot before the window; fetch the gap behind it
    3. Validate the ledger (report, never block)
    4. Reconcile and audit every divergence
    5. Group the window by day for display
    """

    def __init__(
        self,
        source: LedgerSourceInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
        settings: Optional[ReconciliationSettings] = None,
    ):
        self._source = source
        self._audit_logger = audit_logger
        self._validator = validator or LedgerValidator()
        self._settings = settings or get_settings().reconciliation

    async def _call_source(
        self,
        operation: str,
        fetch: Callable[..., Awaitable[T]],
        *args,
        correlation_id: Optional[UUID] = None,
    ) -> T:
        """
        Call the ledger source, retrying transient failures.

        Source errors are audited and re-raised after the last attempt.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.source_retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._settings.source_retry_min_wait,
                max=self._settings.source_retry_max_wait,
            ),
            retry=retry_if_exception_type(SourceUnavailableError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await fetch(*args)
        except LedgerSourceError as e:
            if self._audit_logger:
                await self._audit_logger.log_source_error(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    async def _load_accounts(self, correlation_id: UUID) -> dict[str, Account]:
        accounts = await self._call_source(
            "list_accounts",
            self._source.list_accounts,
            correlation_id=correlation_id,
        )
        return index_accounts(accounts)

    async def _require_account(
        self,
        account_id: str,
        accounts_by_id: dict[str, Account],
        correlation_id: UUID,
    ) -> None:
        if account_id in accounts_by_id:
            return
        error = AccountNotFoundError(account_id)
        if self._audit_logger:
            await self._audit_logger.log_source_error(
                operation="list_accounts",
                error_message=str(error),
                correlation_id=correlation_id,
            )
        raise error

    async def _fetch_gap(
        self,
        account_id: str,
        transactions: list[Transaction],
        snapshots: list[BalanceSnapshot],
        correlation_id: UUID,
    ) -> list[Transaction]:
        """
        Fetch the transactions between the last snapshot before the window
        and the first window transaction.

        Returns an empty list when the window has no anchor before it.
        """
        if not transactions:
            return []

        window_start = min(tx.date for tx in transactions)
        prior = [s for s in snapshots if s.date < window_start]
        if not prior:
            return []

        anchor = max(prior, key=snapshot_order)
        fetched = await self._call_source(
            "list_transactions",
            self._source.list_transactions,
            account_id,
            anchor.date,
            window_start,
            correlation_id=correlation_id,
        )
        return [tx for tx in fetched if anchor.date < tx.date < window_start]

    async def reconcile_window(
        self,
        account_id: str,
        start: datetime,
        end: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> WindowReconciliation:
        """
        Reconcile one account over a display window.

        Args:
            account_id: Account whose running balance is shown
            start: Window start (inclusive, naive means UTC)
            end: Window end (inclusive, naive means UTC)
            correlation_id: Ties the audit events of this run together

        Returns:
            WindowReconciliation with balances, divergences, validation
            issues and day groups

        Raises:
            AccountNotFoundError: If the account is not in the metadata
            LedgerSourceError: If the source keeps failing
        """
        correlation_id = correlation_id or create_correlation_id()
        start, end = assume_utc(start), assume_utc(end)

        accounts_by_id = await self._load_accounts(correlation_id)
        await self._require_account(account_id, accounts_by_id, correlation_id)

        transactions = await self._call_source(
            "list_transactions",
            self._source.list_transactions,
            account_id,
            start,
            end,
            correlation_id=correlation_id,
        )
        snapshots = await self._call_source(
            "list_snapshots",
            self._source.list_snapshots,
            account_id,
            correlation_id=correlation_id,
        )
        gap = await self._fetch_gap(account_id, transactions, snapshots, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_reconciliation_started(
                account_id=account_id,
                transaction_count=len(transactions),
                snapshot_count=len(snapshots),
                correlation_id=correlation_id,
            )

        try:
            validation = self._validator.validate(
                account_id,
                [*transactions, *gap],
                snapshots,
                accounts_by_id,
            )
            reconciler = BalanceReconciler(accounts_by_id, tolerance=self._settings.tolerance)
            result = reconciler.reconcile(account_id, transactions, snapshots, gap)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"account_id": account_id, "stage": "reconcile"},
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_validation(validation, correlation_id)
            await self._audit_logger.log_reconciliation_completed(result, correlation_id)
            if self._settings.audit_divergences:
                for divergence in result.divergences:
                    await self._audit_logger.log_divergence(
                        account_id=account_id,
                        divergence=divergence,
                        correlation_id=correlation_id,
                    )

        days = group_by_day(
            transactions,
            accounts_by_id,
            self._settings.zone,
            result=result,
        )

        return WindowReconciliation(
            result=result,
            validation=validation,
            days=days,
            gap_transaction_count=len(gap),
        )

    async def review_year(
        self,
        year: int,
        account_ids: Optional[Iterable[str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[MonthlyTrend]:
        """
        Build the annual review trend for a set of accounts.

        Args:
            year: Calendar year in the display timezone
            account_ids: Accounts to review; all accounts when None
            correlation_id: Ties the audit events of this run together

        Returns:
            Twelve MonthlyTrend rows
        """
        correlation_id = correlation_id or create_correlation_id()
        zone = self._settings.zone

        accounts_by_id = await self._load_accounts(correlation_id)
        if account_ids is None:
            selected = list(accounts_by_id)
        else:
            selected = list(account_ids)
            for account_id in selected:
                await self._require_account(account_id, accounts_by_id, correlation_id)

        year_start = datetime(year, 1, 1, tzinfo=zone)
        year_end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=zone)

        # A transfer between two reviewed accounts is listed for both
        transactions: dict[str, Transaction] = {}
        snapshots: dict[str, BalanceSnapshot] = {}
        for account_id in selected:
            for tx in await self._call_source(
                "list_transactions",
                self._source.list_transactions,
                account_id,
                year_start,
                year_end,
                correlation_id=correlation_id,
            ):
                transactions[tx.id] = tx
            for snapshot in await self._call_source(
                "list_snapshots",
                self._source.list_snapshots,
                account_id,
                correlation_id=correlation_id,
            ):
                snapshots[snapshot.id] = snapshot

        return annual_balance_trend(
            year,
            transactions.values(),
            snapshots.values(),
            accounts_by_id,
            zone,
        )


def create_flow(
    source: LedgerSourceInterface,
    persist_audit: bool = True,
) -> tuple[ReconciliationFlow, Optional[InMemoryAuditStorage]]:
    """
    Factory function to create a reconciliation flow.

    Args:
        source: Ledger source to reconcile from
        persist_audit: Keep audit events in memory in addition to the
                       structured log. Set to False for log-only auditing.

    Returns:
        (reconciliation_flow, audit_storage)
    """
    audit_storage = InMemoryAuditStorage() if persist_audit else None
    audit_logger = AuditLogger(audit_storage)

    flow = ReconciliationFlow(source=source, audit_logger=audit_logger)
    return flow, audit_storage
