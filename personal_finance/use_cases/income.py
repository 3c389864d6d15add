"""Income use cases."""

from decimal import Decimal
from typing import Any, Optional

from personal_finance.audit import AuditLogger
from personal_finance.models.income import (
    IncomeCreate,
    IncomeDto,
    IncomesSummaryDto,
    IncomeUpdate,
    IncomeWithTransactionsDto,
)
from personal_finance.models.pagination import PagedResponse
from personal_finance.models.transaction import TransactionType
from personal_finance.repositories.income import IncomeRepository
from personal_finance.repositories.transaction import TransactionRepository
from personal_finance.use_cases.base import (
    DEFAULT_LATEST_TRANSACTIONS,
    DEFAULT_SUMMARY_SIZE,
    UseCaseBase,
    changed_fields,
    ensure_unique_name,
)
from personal_finance.validation import EntityValidator


class IncomeUseCases(UseCaseBase):

    def __init__(
        self,
        incomes: IncomeRepository,
        transactions: TransactionRepository,
        validator: EntityValidator,
        audit_logger: Optional[AuditLogger] = None,
        latest_transactions: int = DEFAULT_LATEST_TRANSACTIONS,
        summary_size: int = DEFAULT_SUMMARY_SIZE,
    ):
        super().__init__(validator, audit_logger)
        self._incomes = incomes
        self._transactions = transactions
        self._latest_transactions = latest_transactions
        self._summary_size = summary_size

    async def create(self, user_id: str, payload: Any) -> IncomeDto:
        data = self._validator.validate(IncomeCreate, payload)
        await ensure_unique_name(self._incomes, user_id, data.name)

        income = await self._incomes.create(user_id, data.model_dump())
        await self._audit.log_created(user_id, "income", income.id, income.name)
        return income

    async def get(self, user_id: str, income_id: str) -> IncomeDto:
        income_id = self._validator.require_id(income_id)
        return await self._incomes.get_or_raise(user_id, income_id)

    async def get_paginated(self, user_id: str, params: Any = None) -> PagedResponse:
        return await self._incomes.get_paginated(user_id, params)

    async def _with_transactions(
        self,
        user_id: str,
        income: IncomeDto,
        latest: int,
    ) -> IncomeWithTransactionsDto:
        total = await self._transactions.total_signed_for_category(
            user_id, income.id, TransactionType.INCOME
        )
        latest_transactions = await self._transactions.latest_for_category(
            user_id, income.id, TransactionType.INCOME, latest
        )
        return IncomeWithTransactionsDto(
            **income.model_dump(),
            total_earned=total,
            latest_transactions=latest_transactions,
        )

    async def get_paginated_with_transactions(
        self,
        user_id: str,
        params: Any = None,
        latest: Optional[int] = None,
    ) -> PagedResponse:
        page = await self._incomes.get_paginated(user_id, params)
        latest = self._latest_transactions if latest is None else latest

        enriched = [
            await self._with_transactions(user_id, income, latest)
            for income in page.data
        ]
        return PagedResponse[IncomeWithTransactionsDto](data=enriched, meta=page.meta)

    async def get_summary(self, user_id: str, size: Optional[int] = None) -> IncomesSummaryDto:
        """Top incomes by total_earned, with the total over all incomes."""
        size = self._summary_size if size is None else size
        incomes = await self._incomes.list_all(user_id)

        enriched = [
            await self._with_transactions(user_id, income, 0)
            for income in incomes
        ]
        enriched.sort(key=lambda i: i.total_earned, reverse=True)

        return IncomesSummaryDto(
            incomes=enriched[:size],
            total_earned=sum((i.total_earned for i in enriched), Decimal("0")),
            count=len(enriched),
        )

    async def update(self, user_id: str, income_id: str, payload: Any) -> IncomeDto:
        income_id = self._validator.require_id(income_id)
        data = self._validator.validate(IncomeUpdate, payload)
        current = await self._incomes.get_or_raise(user_id, income_id)

        changes = changed_fields(current, data)
        if not changes:
            return current
        if "name" in changes:
            await ensure_unique_name(self._incomes, user_id, changes["name"], income_id)

        income = await self._incomes.update(user_id, income_id, changes)
        await self._audit.log_updated(user_id, "income", income_id, sorted(changes))
        return income

    async def delete(self, user_id: str, income_id: str) -> None:
        income_id = self._validator.require_id(income_id)
        await self._incomes.get_or_raise(user_id, income_id)
        await self._incomes.delete(user_id, income_id)
        await self._audit.log_deleted(user_id, "income", income_id)
