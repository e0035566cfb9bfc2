"""
Abstract Storage Interfaces

DESIGN DECISION: The budget backend is an external collaborator. We only
define the operations reconciliation needs from it, so that:
1. The reconciliation flow never depends on a particular API client
2. In-memory storage can be used for testing
3. Caching layers can be added transparently

The interface is intentionally small. Reconciliation reads accounts,
transactions and balance snapshots, and appends audit events.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.ledger import Account, BalanceSnapshot, Transaction


class LedgerSourceInterface(ABC):
    """
    Abstract interface for reading ledger data.

    Any backend client (REST API, database, fixtures) must implement
    these methods.
    """

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """
        List the metadata of every account visible to the user.

        Returns:
            All accounts

        Raises:
            SourceUnavailableError: If the backend can't be reached
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        account_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Transaction]:
        """
        List the transactions touching an account in a time range.

        Args:
            account_id: Account as source or destination
            start: Earliest instant (inclusive)
            end: Latest instant (inclusive)

        Naive instants are UTC, like the timestamps the backend sends.

        Returns:
            Matching transactions, in no particular order

        Raises:
            SourceUnavailableError: If the backend can't be reached
        """
        pass

    @abstractmethod
    async def list_snapshots(self, account_id: str) -> list[BalanceSnapshot]:
        """
        List every balance snapshot recorded for an account.

        Args:
            account_id: The account

        Returns:
            Snapshots of any date, in no particular order

        Raises:
            SourceUnavailableError: If the backend can't be reached
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (one reconciliation run).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'account', 'snapshot')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class LedgerSourceError(Exception):
    """Base exception for ledger source operations."""
    pass


class SourceUnavailableError(LedgerSourceError):
    """The backend could not be reached. Safe to retry."""
    pass


class AccountNotFoundError(LedgerSourceError):
    """The requested account does not exist."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")
