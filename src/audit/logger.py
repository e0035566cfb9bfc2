"""
Audit Logger

DESIGN DECISION: Every reconciliation run is logged.
This provides:
1. Traceability of balance corrections back to the divergence that prompted them
2. Debugging capability when a balance looks wrong
3. A history the user can browse

The audit logger:
- Is async so it can sit on a storage backend
- Gracefully handles failures (doesn't break reconciliation if logging fails)
- Supports correlation IDs to trace the events of one run
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.models.ledger import Divergence, LedgerValidationResult, ReconciliationResult
from src.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_reconciliation_started(
        self,
        account_id: str,
        transaction_count: int,
        snapshot_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log the start of a reconciliation run."""
        event = AuditEventBuilder.reconciliation_started(
            account_id=account_id,
            transaction_count=transaction_count,
            snapshot_count=snapshot_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_reconciliation_completed(
        self,
        result: ReconciliationResult,
        correlation_id: UUID,
    ) -> None:
        """Log reconciliation completion."""
        event = AuditEventBuilder.reconciliation_completed(
            result=result,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_divergence(
        self,
        account_id: str,
        divergence: Divergence,
        correlation_id: UUID,
    ) -> None:
        """Log one detected divergence."""
        event = AuditEventBuilder.divergence_detected(
            account_id=account_id,
            divergence=divergence,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation(
        self,
        validation: LedgerValidationResult,
        correlation_id: UUID,
    ) -> None:
        """Log the ledger validation outcome."""
        event = AuditEventBuilder.validation_finished(
            validation=validation,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_source_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger source failure."""
        event = AuditEventBuilder.source_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a reconciliation run and pass it through
    all subsequent operations.
    """
    return uuid4()
