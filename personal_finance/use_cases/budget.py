"""Budget use cases."""

from decimal import Decimal
from typing import Any, Optional

from personal_finance.audit import AuditLogger
from personal_finance.models.budget import (
    BudgetCreate,
    BudgetDto,
    BudgetsSummaryDto,
    BudgetUpdate,
    BudgetWithTransactionsDto,
)
from personal_finance.models.pagination import PagedResponse
from personal_finance.models.transaction import TransactionType
from personal_finance.repositories.budget import BudgetRepository
from personal_finance.repositories.transaction import TransactionRepository
from personal_finance.use_cases.base import (
    DEFAULT_LATEST_TRANSACTIONS,
    DEFAULT_SUMMARY_SIZE,
    UseCaseBase,
    changed_fields,
    ensure_unique_name,
)
from personal_finance.validation import EntityValidator


class BudgetUseCases(UseCaseBase):

    def __init__(
        self,
        budgets: BudgetRepository,
        transactions: TransactionRepository,
        validator: EntityValidator,
        audit_logger: Optional[AuditLogger] = None,
        latest_transactions: int = DEFAULT_LATEST_TRANSACTIONS,
        summary_size: int = DEFAULT_SUMMARY_SIZE,
    ):
        super().__init__(validator, audit_logger)
        self._budgets = budgets
        self._transactions = transactions
        self._latest_transactions = latest_transactions
        self._summary_size = summary_size

    async def create(self, user_id: str, payload: Any) -> BudgetDto:
        data = self._validator.validate(BudgetCreate, payload)
        await ensure_unique_name(self._budgets, user_id, data.name)

        budget = await self._budgets.create(user_id, data.model_dump())
        await self._audit.log_created(user_id, "budget", budget.id, budget.name)
        return budget

    async def get(self, user_id: str, budget_id: str) -> BudgetDto:
        budget_id = self._validator.require_id(budget_id)
        return await self._budgets.get_or_raise(user_id, budget_id)

    async def list_all(self, user_id: str) -> list[BudgetDto]:
        return await self._budgets.list_all(user_id)

    async def get_paginated(self, user_id: str, params: Any = None) -> PagedResponse:
        return await self._budgets.get_paginated(user_id, params)

    async def _with_transactions(
        self,
        user_id: str,
        budget: BudgetDto,
        latest: int,
    ) -> BudgetWithTransactionsDto:
        total = await self._transactions.total_signed_for_category(
            user_id, budget.id, TransactionType.EXPENSE
        )
        latest_transactions = await self._transactions.latest_for_category(
            user_id, budget.id, TransactionType.EXPENSE, latest
        )
        return BudgetWithTransactionsDto(
            **budget.model_dump(),
            # Expenses are stored negative
            total_spending=-total if total else Decimal("0"),
            latest_transactions=latest_transactions,
        )

    async def get_paginated_with_transactions(
        self,
        user_id: str,
        params: Any = None,
        latest: Optional[int] = None,
    ) -> PagedResponse:
        """Same page as get_paginated, each budget enriched with its spending."""
        page = await self._budgets.get_paginated(user_id, params)
        latest = self._latest_transactions if latest is None else latest

        enriched = [
            await self._with_transactions(user_id, budget, latest)
            for budget in page.data
        ]
        return PagedResponse[BudgetWithTransactionsDto](data=enriched, meta=page.meta)

    async def get_summary(self, user_id: str, size: Optional[int] = None) -> BudgetsSummaryDto:
        """Top budgets by maximum_spending, with totals over all budgets."""
        size = self._summary_size if size is None else size
        budgets = await self._budgets.list_all(user_id)

        enriched = [
            await self._with_transactions(user_id, budget, 0)
            for budget in budgets
        ]
        enriched.sort(key=lambda b: b.maximum_spending, reverse=True)

        return BudgetsSummaryDto(
            budgets=enriched[:size],
            total_maximum_spending=sum((b.maximum_spending for b in enriched), Decimal("0")),
            total_spending=sum((b.total_spending for b in enriched), Decimal("0")),
            count=len(enriched),
        )

    async def update(self, user_id: str, budget_id: str, payload: Any) -> BudgetDto:
        budget_id = self._validator.require_id(budget_id)
        data = self._validator.validate(BudgetUpdate, payload)
        current = await self._budgets.get_or_raise(user_id, budget_id)

        changes = changed_fields(current, data)
        if not changes:
            return current
        if "name" in changes:
            await ensure_unique_name(self._budgets, user_id, changes["name"], budget_id)

        budget = await self._budgets.update(user_id, budget_id, changes)
        await self._audit.log_updated(user_id, "budget", budget_id, sorted(changes))
        return budget

    async def delete(self, user_id: str, budget_id: str) -> None:
        budget_id = self._validator.require_id(budget_id)
        await self._budgets.get_or_raise(user_id, budget_id)
        await self._budgets.delete(user_id, budget_id)
        await self._audit.log_deleted(user_id, "budget", budget_id)
