"""
Audit Models for Personal Finance

Each write a user makes produces one audit event, and every action
that ends in an error produces another. Pot deposits and withdrawals
are recorded with their amount.

Audit events are append-only: nothing updates or deletes them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """What happened."""
    # Entity lifecycle
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"

    # Pot money operations
    MONEY_ADDED = "money_added"
    MONEY_WITHDRAWN = "money_withdrawn"

    # Maintenance
    SIGNED_AMOUNTS_BACKFILLED = "signed_amounts_backfilled"

    # Failures
    ACTION_FAILED = "action_failed"


class AuditSeverity(str, Enum):
    """Maps onto the structlog level the event is logged at."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    One audit record.

    user_id is None only for actions rejected before a user was known.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Audit record id"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="UTC time the event was recorded"
    )

    event_type: AuditEventType = Field(
        ...,
        description="What happened"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Log level to emit at"
    )

    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the affected data"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Singular entity kind, e.g. 'budget'"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Document id of the affected entity"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="One-line summary for people reading the log"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Event-specific data (amounts, changed fields)"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Flat, JSON-friendly view passed to structlog as key-value pairs."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_document(self) -> dict:
        """Shape written to the audit_events collection."""
        doc = self.to_log_dict()
        doc["timestamp"] = self.timestamp
        return doc


class AuditEventBuilder:
    """
    Factory methods, one per event type.

    Usage:
        event = AuditEventBuilder.entity_created(user_id, "budget", budget_id, name)
        event = AuditEventBuilder.money_withdrawn(user_id, pot_id, amount)
    """

    @staticmethod
    def entity_created(
        user_id: str,
        entity_type: str,
        entity_id: str,
        name: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_CREATED,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} created: {name or entity_id}",
            details={"name": name} if name else {},
        )

    @staticmethod
    def entity_updated(
        user_id: str,
        entity_type: str,
        entity_id: str,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_UPDATED,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} updated",
            details={"changed_fields": changed_fields},
        )

    @staticmethod
    def entity_deleted(
        user_id: str,
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_DELETED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted",
        )

    @staticmethod
    def money_added(user_id: str, pot_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONEY_ADDED,
            user_id=user_id,
            entity_type="pot",
            entity_id=pot_id,
            description=f"Added {amount} to pot",
            details={"amount": amount},
        )

    @staticmethod
    def money_withdrawn(user_id: str, pot_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONEY_WITHDRAWN,
            user_id=user_id,
            entity_type="pot",
            entity_id=pot_id,
            description=f"Withdrew {amount} from pot",
            details={"amount": amount},
        )

    @staticmethod
    def signed_amounts_backfilled(user_id: str, updated: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_AMOUNTS_BACKFILLED,
            user_id=user_id,
            entity_type="transaction",
            description=f"Backfilled signed amounts on {updated} transactions",
            details={"updated": updated},
        )

    @staticmethod
    def action_failed(
        action: str,
        error_message: str,
        user_id: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Action failed: {action}",
            error_message=error_message,
            details=details or {},
        )
