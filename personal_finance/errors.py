"""
Domain Error Taxonomy

Every failure that crosses a use-case boundary is one of these.
The action layer turns them into the uniform response envelope.

Storage failures live next to the storage contract
(see services/storage/interface.py).
"""

from typing import Optional


class FinanceError(Exception):
    """Base exception for all domain-level failures."""
    pass


class ValidationError(FinanceError):
    """
    Input failed schema or rule validation.

    Carries one human-readable message per offending field so the
    caller can show it next to the right input.
    """

    def __init__(
        self,
        errors: dict[str, str],
        message: str = "Invalid input",
    ):
        self.errors = errors
        super().__init__(message)


class AuthError(FinanceError):
    """Missing or invalid credentials."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "You must be authenticated to do this action")


class NotFoundError(FinanceError):
    """Entity absent for the given id and user."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class DomainRuleError(FinanceError):
    """A business rule rejected an otherwise well-formed request."""
    pass


class InsufficientFundsError(DomainRuleError):
    """Withdrawal larger than what the pot holds."""

    def __init__(self, requested, available):
        self.requested = requested
        self.available = available
        super().__init__("Insufficient funds in pot")


class DuplicateNameError(DomainRuleError):
    """Another entity of the same kind already uses this name."""

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f"{entity.capitalize()} with name {name} already exists")
