"""
Helpers shared by the per-entity use cases.

Use cases are thin: validate, apply the domain rules, then delegate to a
repository. They hold no state of their own besides their collaborators.
"""

from typing import Any, Optional

from pydantic import BaseModel

from personal_finance.audit import AuditLogger
from personal_finance.errors import DuplicateNameError
from personal_finance.repositories.base import BaseRepository
from personal_finance.validation import EntityValidator


DEFAULT_LATEST_TRANSACTIONS = 3
DEFAULT_SUMMARY_SIZE = 4


def changed_fields(current: BaseModel, update: BaseModel) -> dict[str, Any]:
    """Fields the update actually sets to a different value."""
    changes = {}
    for name, value in update.model_dump(exclude_unset=True).items():
        if getattr(current, name, None) != value:
            changes[name] = value
    return changes


async def ensure_unique_name(
    repository: BaseRepository,
    user_id: str,
    name: str,
    exclude_id: Optional[str] = None,
) -> None:
    """
    Raises:
        DuplicateNameError: If another entity of this kind already uses name
    """
    existing = await repository.find_by_name(user_id, name)
    if existing is not None and existing.id != exclude_id:
        raise DuplicateNameError(repository.entity, name)


class UseCaseBase:

    def __init__(
        self,
        validator: EntityValidator,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._validator = validator
        self._audit = audit_logger or AuditLogger()
