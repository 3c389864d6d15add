"""
Tests for transaction use cases: category resolution, signed amounts,
date rules and the signed_amount backfill.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from factories import USER_ID, budget_payload, income_payload, transaction_payload
from personal_finance.errors import NotFoundError, ValidationError
from personal_finance.models import TransactionType


class TestCreateTransaction:

    @pytest.mark.asyncio
    async def test_expense_gets_budget_category(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id)
        )

        assert transaction.type is TransactionType.EXPENSE
        assert transaction.amount == Decimal("42.50")
        assert transaction.signed_amount == Decimal("-42.50")
        assert transaction.category.id == budget.id
        assert transaction.category.name == "Groceries"
        assert transaction.category.color_tag == "#1A2B3C"

    @pytest.mark.asyncio
    async def test_income_gets_income_category(self, components):
        income = await components.incomes.create(USER_ID, income_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(income.id, type="income", amount="1500")
        )
        assert transaction.signed_amount == Decimal("1500")
        assert transaction.category.name == "Salary"

    @pytest.mark.asyncio
    async def test_expense_cannot_use_income_category(self, components):
        income = await components.incomes.create(USER_ID, income_payload())
        with pytest.raises(NotFoundError) as exc_info:
            await components.transactions.create(USER_ID, transaction_payload(income.id))
        assert "expense category" in str(exc_info.value).lower()

    @pytest.mark.asyncio
    async def test_missing_category_writes_nothing(self, components, store):
        with pytest.raises(NotFoundError):
            await components.transactions.create(USER_ID, transaction_payload("nope"))
        assert await store.count(f"users/{USER_ID}/transactions", []) == 0

    @pytest.mark.asyncio
    async def test_date_within_tolerance(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        soon = datetime.now(timezone.utc) + timedelta(days=6)
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id, transaction_date=soon)
        )
        assert transaction.transaction_date == soon

    @pytest.mark.asyncio
    async def test_date_too_far_in_future(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        later = datetime.now(timezone.utc) + timedelta(days=8)
        with pytest.raises(ValidationError) as exc_info:
            await components.transactions.create(
                USER_ID, transaction_payload(budget.id, transaction_date=later)
            )
        assert "transaction_date" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_all_field_errors_reported_together(self, components):
        with pytest.raises(ValidationError) as exc_info:
            await components.transactions.create(USER_ID, {
                "name": "",
                "type": "gift",
                "amount": "0",
                "emoji": "x",
            })
        errors = exc_info.value.errors
        for field in ("name", "type", "amount", "emoji", "transaction_date", "category_id"):
            assert field in errors


class TestUpdateTransaction:

    @pytest.mark.asyncio
    async def test_amount_change_updates_signed_amount(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id)
        )

        updated = await components.transactions.update(
            USER_ID, transaction.id, {"amount": "10.00"}
        )
        assert updated.amount == Decimal("10.00")
        assert updated.signed_amount == Decimal("-10.00")

    @pytest.mark.asyncio
    async def test_type_change_needs_matching_category(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        income = await components.incomes.create(USER_ID, income_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id)
        )

        # The budget id is not an income category
        with pytest.raises(NotFoundError):
            await components.transactions.update(USER_ID, transaction.id, {"type": "income"})

        updated = await components.transactions.update(
            USER_ID, transaction.id, {"type": "income", "category_id": income.id}
        )
        assert updated.type is TransactionType.INCOME
        assert updated.signed_amount == Decimal("42.50")
        assert updated.category.name == "Salary"

    @pytest.mark.asyncio
    async def test_category_snapshot_is_refreshed_on_recategorise(self, components):
        groceries = await components.budgets.create(USER_ID, budget_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(groceries.id)
        )
        await components.budgets.update(USER_ID, groceries.id, {"name": "Food"})

        # Renaming a budget does not touch stored transactions
        stale = await components.transactions.get(USER_ID, transaction.id)
        assert stale.category.name == "Groceries"

        refreshed = await components.transactions.update(
            USER_ID, transaction.id, {"category_id": groceries.id}
        )
        assert refreshed.category.name == "Food"

    @pytest.mark.asyncio
    async def test_unchanged_update_is_a_no_op(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id)
        )
        same = await components.transactions.update(
            USER_ID, transaction.id, {"name": "Weekly shop", "amount": "42.5"}
        )
        assert same.updated_at == transaction.updated_at

    @pytest.mark.asyncio
    async def test_update_rejects_future_date(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id)
        )
        later = datetime.now(timezone.utc) + timedelta(days=30)
        with pytest.raises(ValidationError):
            await components.transactions.update(
                USER_ID, transaction.id, {"transaction_date": later}
            )

    @pytest.mark.asyncio
    async def test_delete(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        transaction = await components.transactions.create(
            USER_ID, transaction_payload(budget.id)
        )
        await components.transactions.delete(USER_ID, transaction.id)
        with pytest.raises(NotFoundError):
            await components.transactions.get(USER_ID, transaction.id)


class TestTransactionQueries:

    @pytest.mark.asyncio
    async def test_filter_by_type_and_category(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        income = await components.incomes.create(USER_ID, income_payload())
        await components.transactions.create(USER_ID, transaction_payload(budget.id))
        await components.transactions.create(
            USER_ID, transaction_payload(income.id, type="income", name="Pay")
        )

        page = await components.transactions.get_paginated(USER_ID, {
            "filters": [{"field": "type", "operator": "==", "value": "income"}],
        })
        assert [t.name for t in page.data] == ["Pay"]

        page = await components.transactions.get_paginated(USER_ID, {
            "filters": [{"field": "category.id", "operator": "in", "value": [budget.id]}],
        })
        assert [t.name for t in page.data] == ["Weekly shop"]

    @pytest.mark.asyncio
    async def test_default_order_is_newest_first(self, components):
        budget = await components.budgets.create(USER_ID, budget_payload())
        for day in (3, 1, 2):
            await components.transactions.create(USER_ID, transaction_payload(
                budget.id, name=f"Day {day}", transaction_date=f"2024-05-0{day}T00:00:00Z"
            ))

        page = await components.transactions.get_paginated(USER_ID)
        assert [t.name for t in page.data] == ["Day 3", "Day 2", "Day 1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bound", ["2024-03-01", "2024-03-01T00:00:00", "2024-03-01T00:00:00Z"])
    async def test_date_filter_without_timezone_is_utc(self, components, bound):
        budget = await components.budgets.create(USER_ID, budget_payload())
        await components.transactions.create(USER_ID, transaction_payload(
            budget.id, name="March", transaction_date="2024-03-05T12:00:00Z"
        ))
        await components.transactions.create(USER_ID, transaction_payload(
            budget.id, name="February", transaction_date="2024-02-28T12:00:00Z"
        ))

        page = await components.transactions.get_paginated(USER_ID, {
            "filters": [{"field": "transaction_date", "operator": ">=", "value": bound}],
        })

        assert [t.name for t in page.data] == ["March"]
        assert page.meta.pagination.total_items == 1


class TestBackfill:

    @pytest.mark.asyncio
    async def test_backfill_signed_amounts(self, components, store):
        collection = f"users/{USER_ID}/transactions"
        category = {"id": "b1", "name": "Groceries", "color_tag": "#1A2B3C"}
        date = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for name, kind, amount in [("Old shop", "expense", "12.00"), ("Old pay", "income", "99")]:
            await store.create(collection, {
                "user_id": USER_ID,
                "name": name,
                "type": kind,
                "amount": Decimal(amount),
                "transaction_date": date,
                "emoji": "\U0001F6D2",
                "category": category,
            })

        assert await components.transactions.backfill_signed_amounts(USER_ID) == 2
        # Idempotent
        assert await components.transactions.backfill_signed_amounts(USER_ID) == 0

        page = await components.transactions.get_paginated(
            USER_ID, {"sort": {"field": "name", "order": "asc"}}
        )
        signed = {t.name: t.signed_amount for t in page.data}
        assert signed == {"Old pay": Decimal("99"), "Old shop": Decimal("-12.00")}
