"""
Tests for EntityValidator: schema stage and domain rules.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from personal_finance.errors import InsufficientFundsError, ValidationError
from personal_finance.models import BudgetCreate, PotDto
from personal_finance.validation import EntityValidator


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestSchemaStage:

    def test_validate_returns_model(self, validator):
        budget = validator.validate(
            BudgetCreate, {"name": "Rent", "maximum_spending": "900", "color_tag": "#000000"}
        )
        assert isinstance(budget, BudgetCreate)

    def test_validate_revalidates_unchecked_instances(self, validator):
        unchecked = BudgetCreate.model_construct(
            name="", maximum_spending=Decimal("-1"), color_tag="#000000"
        )
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(BudgetCreate, unchecked)
        assert {"name", "maximum_spending"} <= set(exc_info.value.errors)

    def test_none_payload_reports_required_fields(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(BudgetCreate, None)
        assert exc_info.value.errors["name"] == "Field required"

    def test_messages_have_no_pydantic_prefix(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction_create({
                "name": "Coffee",
                "type": "expense",
                "amount": "3",
                "transaction_date": NOW,
                "emoji": "coffee",
                "category_id": "b1",
            })
        assert exc_info.value.errors["emoji"] == "Must contain emoji only"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_id(self, validator, value):
        with pytest.raises(ValidationError) as exc_info:
            validator.require_id(value, "pot_id")
        assert "pot_id" in exc_info.value.errors

    def test_require_id_strips(self, validator):
        assert validator.require_id(" p1 ") == "p1"

    @pytest.mark.parametrize("payload", ["12.34", Decimal("12.34"), 12, {"amount": "12.34"}])
    def test_money_operation_payloads(self, validator, payload):
        assert validator.validate_money_operation(payload).amount > 0


class TestDomainRules:

    def test_date_at_tolerance_edge(self, validator):
        validator.ensure_transaction_date_allowed(NOW + timedelta(days=7), now=NOW)

    def test_date_past_tolerance(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.ensure_transaction_date_allowed(
                NOW + timedelta(days=7, seconds=1), now=NOW
            )
        assert "transaction_date" in exc_info.value.errors

    def test_old_dates_allowed(self, validator):
        validator.ensure_transaction_date_allowed(datetime(1999, 1, 1, tzinfo=timezone.utc), now=NOW)

    def test_zero_tolerance(self):
        strict = EntityValidator(future_date_tolerance_days=0)
        with pytest.raises(ValidationError):
            strict.ensure_transaction_date_allowed(NOW + timedelta(minutes=1), now=NOW)

    def _pot(self, total_saved):
        return PotDto(
            id="p1",
            name="Holiday",
            color_tag="#000000",
            total_saved=Decimal(total_saved),
            created_at=NOW,
            updated_at=NOW,
        )

    def test_sufficient_funds(self, validator):
        validator.ensure_sufficient_funds(self._pot("50"), Decimal("50"))

    def test_insufficient_funds(self, validator):
        with pytest.raises(InsufficientFundsError) as exc_info:
            validator.ensure_sufficient_funds(self._pot("50"), Decimal("50.01"))
        assert exc_info.value.requested == Decimal("50.01")
