"""Audit logging package."""

from personal_finance.audit.logger import (
    AUDIT_COLLECTION,
    AuditLogger,
    configure_logging,
)

__all__ = ["AUDIT_COLLECTION", "AuditLogger", "configure_logging"]
