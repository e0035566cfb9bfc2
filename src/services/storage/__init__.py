"""
Storage Services Package

Provides abstract interfaces for reading ledger data and persisting audit
events, plus in-memory implementations.
"""

from src.services.storage.interface import (
    AccountNotFoundError,
    AuditStorageInterface,
    LedgerSourceError,
    LedgerSourceInterface,
    SourceUnavailableError,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerSource,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerSourceInterface",
    # Exceptions
    "AccountNotFoundError",
    "LedgerSourceError",
    "SourceUnavailableError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerSource",
]
