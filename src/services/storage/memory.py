"""
In-Memory Storage Implementation

Holds ledger data and audit events in process memory. Used by tests and
for reconciling data that was fetched elsewhere (an exported ledger, a
fixture file).

Filtering matches what the budget backend does, so the reconciliation
flow behaves the same against either.
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.ledger import Account, BalanceSnapshot, Transaction, assume_utc
from src.services.storage.interface import (
    AuditStorageInterface,
    LedgerSourceInterface,
)


class InMemoryLedgerSource(LedgerSourceInterface):
    """Ledger source backed by plain lists."""

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        transactions: Iterable[Transaction] = (),
        snapshots: Iterable[BalanceSnapshot] = (),
    ):
        self._accounts = list(accounts)
        self._transactions = list(transactions)
        self._snapshots = list(snapshots)

    def add_transaction(self, tx: Transaction) -> None:
        self._transactions.append(tx)

    def add_snapshot(self, snapshot: BalanceSnapshot) -> None:
        self._snapshots.append(snapshot)

    async def list_accounts(self) -> list[Account]:
        return list(self._accounts)

    async def list_transactions(
        self,
        account_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Transaction]:
        start, end = assume_utc(start), assume_utc(end)
        return [
            tx for tx in self._transactions
            if tx.touches(account_id) and start <= tx.date <= end
        ]

    async def list_snapshots(self, account_id: str) -> list[BalanceSnapshot]:
        # Snapshots without an account id are assumed to be the caller's
        return [
            s for s in self._snapshots
            if s.account_id is None or s.account_id == account_id
        ]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
