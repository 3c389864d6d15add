"""
Two-Stage Entity Validation

STAGE 1 - SCHEMA VALIDATION:
- Types, required fields, lengths, formats (pydantic)

STAGE 2 - DOMAIN RULES:
- Transaction dates too far in the future
- Withdrawals larger than a pot's balance

Stage 2 only runs on input that passed stage 1. Both stages run before
any storage write.

IMPORTANT: Validation NEVER silently fixes input. Every failure is
reported, keyed by the field that caused it.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from personal_finance.config import get_settings
from personal_finance.errors import InsufficientFundsError, ValidationError
from personal_finance.models.common import MoneyOperation, format_validation_errors
from personal_finance.models.pot import PotDto
from personal_finance.models.transaction import TransactionCreate, TransactionUpdate


ModelT = TypeVar("ModelT", bound=BaseModel)


class EntityValidator:
    """
    Validates use-case input.

    Stage 1 is generic over any pydantic schema; the stage 2 rules are
    the handful the schemas cannot express on their own.
    """

    def __init__(self, future_date_tolerance_days: Optional[int] = None):
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().app.future_date_tolerance_days
        self._future_date_tolerance = timedelta(days=future_date_tolerance_days)

    # -------------------------------------------------------------------------
    # Stage 1
    # -------------------------------------------------------------------------

    def validate(
        self,
        model: type[ModelT],
        payload: Union[ModelT, dict[str, Any], None],
    ) -> ModelT:
        """
        Parse a payload with an entity schema.

        Raises:
            ValidationError: one message per offending field
        """
        if isinstance(payload, model):
            # Re-run validation; instances may have been built with model_construct
            payload = payload.model_dump(exclude_unset=True)
        try:
            return model.model_validate(payload or {})
        except PydanticValidationError as e:
            raise ValidationError(format_validation_errors(e)) from e

    def require_id(self, value: Optional[str], field: str = "id") -> str:
        if not value or not str(value).strip():
            raise ValidationError({field: "Field required"})
        return str(value).strip()

    def validate_money_operation(self, payload: Any) -> MoneyOperation:
        if isinstance(payload, (int, float, str, Decimal)):
            payload = {"amount": payload}
        return self.validate(MoneyOperation, payload)

    # -------------------------------------------------------------------------
    # Stage 2
    # -------------------------------------------------------------------------

    def ensure_transaction_date_allowed(
        self,
        transaction_date: datetime,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or datetime.now(timezone.utc)
        latest = now + self._future_date_tolerance
        if transaction_date > latest:
            raise ValidationError(
                {"transaction_date": "Transaction date is too far in the future"}
            )

    def validate_transaction_create(self, payload: Any) -> TransactionCreate:
        data = self.validate(TransactionCreate, payload)
        self.ensure_transaction_date_allowed(data.transaction_date)
        return data

    def validate_transaction_update(self, payload: Any) -> TransactionUpdate:
        data = self.validate(TransactionUpdate, payload)
        if data.transaction_date is not None:
            self.ensure_transaction_date_allowed(data.transaction_date)
        return data

    @staticmethod
    def ensure_sufficient_funds(pot: PotDto, amount: Decimal) -> None:
        """
        Raises:
            InsufficientFundsError: If amount exceeds the pot's total_saved
        """
        if amount > pot.total_saved:
            raise InsufficientFundsError(amount, pot.total_saved)
