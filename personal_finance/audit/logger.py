"""
Audit logging.

Every event is written to the structlog JSON log. With a store, it is
also appended to the audit_events collection; a failed store write is
logged and reported through the return value, never raised.
"""

import logging
from decimal import Decimal
from typing import Optional

import structlog

from personal_finance.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from personal_finance.services.storage.interface import DocumentStore


AUDIT_COLLECTION = "audit_events"


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


def configure_logging(log_level: str = "INFO") -> None:
    """
    Route structlog's JSON lines through the stdlib root logger.

    filter_by_level defers to stdlib levels, so nothing below WARNING
    is emitted until this has run.
    """
    logging.basicConfig(format="%(message)s", level=log_level.upper())
    logging.getLogger().setLevel(log_level.upper())


class AuditLogger:
    """Writes audit events to the log and, optionally, to a document store."""

    def __init__(self, store: Optional[DocumentStore] = None):
        self._store = store
        self._logger = structlog.get_logger("personal_finance.audit")

    async def log(self, event: AuditEvent) -> bool:
        """Return False only when a store is set and writing to it failed."""
        log_dict = event.to_log_dict()

        if event.severity is AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._store:
            try:
                await self._store.create(AUDIT_COLLECTION, event.to_document())
                return True
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_created(
        self,
        user_id: str,
        entity_type: str,
        entity_id: str,
        name: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entity_created(user_id, entity_type, entity_id, name))

    async def log_updated(
        self,
        user_id: str,
        entity_type: str,
        entity_id: str,
        changed_fields: list[str],
    ) -> None:
        await self.log(
            AuditEventBuilder.entity_updated(user_id, entity_type, entity_id, changed_fields)
        )

    async def log_deleted(self, user_id: str, entity_type: str, entity_id: str) -> None:
        await self.log(AuditEventBuilder.entity_deleted(user_id, entity_type, entity_id))

    async def log_money_added(self, user_id: str, pot_id: str, amount: Decimal) -> None:
        await self.log(AuditEventBuilder.money_added(user_id, pot_id, str(amount)))

    async def log_money_withdrawn(self, user_id: str, pot_id: str, amount: Decimal) -> None:
        await self.log(AuditEventBuilder.money_withdrawn(user_id, pot_id, str(amount)))

    async def log_backfill(self, user_id: str, updated: int) -> None:
        await self.log(AuditEventBuilder.signed_amounts_backfilled(user_id, updated))

    async def log_action_failed(
        self,
        action: str,
        error_message: str,
        user_id: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Log an action that ended in an error response."""
        await self.log(
            AuditEventBuilder.action_failed(action, error_message, user_id, details)
        )
