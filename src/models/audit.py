"""
Audit Models for Balance Reconciliation

Every reconciliation run leaves a trail:
1. What was reconciled, and from which anchor
2. Every divergence found, so a user can trace a balance correction back
3. Data-quality issues and source failures

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from src.models.ledger import Divergence, LedgerValidationResult, ReconciliationResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Reconciliation
    RECONCILIATION_STARTED = "reconciliation_started"
    RECONCILIATION_COMPLETED = "reconciliation_completed"
    DIVERGENCE_DETECTED = "divergence_detected"

    # Validation
    LEDGER_VALIDATION_PASSED = "ledger_validation_passed"
    LEDGER_VALIDATION_ISSUES = "ledger_validation_issues"

    # System events
    SOURCE_ERROR = "source_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one reconciliation run"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.reconciliation_started(account_id, count, correlation_id)
        event = AuditEventBuilder.divergence_detected(account_id, divergence, correlation_id)
    """

    @staticmethod
    def reconciliation_started(
        account_id: str,
        transaction_count: int,
        snapshot_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_STARTED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Reconciling account {account_id}",
            details={
                "transaction_count": transaction_count,
                "snapshot_count": snapshot_count,
            },
        )

    @staticmethod
    def reconciliation_completed(
        result: ReconciliationResult,
        correlation_id: UUID
    ) -> AuditEvent:
        closing = result.closing_balance
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_COMPLETED,
            severity=AuditSeverity.WARNING if result.divergences else AuditSeverity.INFO,
            entity_type="account",
            entity_id=result.viewpoint_account_id,
            correlation_id=correlation_id,
            description=(
                f"Reconciled {len(result.balance_after)} transactions "
                f"with {result.divergence_count} divergences"
            ),
            details={
                "anchor_case": result.anchor_case.value,
                "anchor_id": result.anchor.id if result.anchor else None,
                "closing_balance": str(closing) if closing is not None else None,
                "divergence_count": result.divergence_count,
            },
        )

    @staticmethod
    def divergence_detected(
        account_id: str,
        divergence: Divergence,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DIVERGENCE_DETECTED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            entity_id=divergence.id,
            correlation_id=correlation_id,
            description=(
                f"Balance of account {account_id} diverges by {divergence.amount} "
                f"on {divergence.date.isoformat()}"
            ),
            details={
                "account_id": account_id,
                "calculated_balance": str(divergence.calculated_balance),
                "actual_balance": str(divergence.actual_balance),
                "difference": str(divergence.amount),
            },
        )

    @staticmethod
    def validation_finished(
        validation: LedgerValidationResult,
        correlation_id: UUID
    ) -> AuditEvent:
        if not validation.issues:
            return AuditEvent(
                event_type=AuditEventType.LEDGER_VALIDATION_PASSED,
                entity_type="account",
                entity_id=validation.viewpoint_account_id,
                correlation_id=correlation_id,
                description="Ledger passed data-quality checks",
            )
        return AuditEvent(
            event_type=AuditEventType.LEDGER_VALIDATION_ISSUES,
            severity=AuditSeverity.ERROR if validation.has_errors else AuditSeverity.WARNING,
            entity_type="account",
            entity_id=validation.viewpoint_account_id,
            correlation_id=correlation_id,
            description=f"Ledger validation found {len(validation.issues)} issues",
            details={
                "issues": [
                    {"type": i.issue_type, "record_id": i.record_id, "message": i.message}
                    for i in validation.issues
                ],
            },
        )

    @staticmethod
    def source_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SOURCE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Ledger source error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
