"""Services package."""

from src.services.storage import (
    AccountNotFoundError,
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryLedgerSource,
    LedgerSourceError,
    LedgerSourceInterface,
    SourceUnavailableError,
)

__all__ = [
    "AccountNotFoundError",
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryLedgerSource",
    "LedgerSourceError",
    "LedgerSourceInterface",
    "SourceUnavailableError",
]
