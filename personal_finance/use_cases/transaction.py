"""
Transaction use cases.

A transaction's category is resolved from the incomes repository for
income and from the budgets repository for expenses, and a snapshot of
it is stored on the transaction.
"""

from typing import Any, Optional

from personal_finance.audit import AuditLogger
from personal_finance.errors import NotFoundError
from personal_finance.models.pagination import PagedResponse
from personal_finance.models.transaction import (
    TransactionCategory,
    TransactionDto,
    TransactionType,
    signed_amount_for,
)
from personal_finance.repositories.budget import BudgetRepository
from personal_finance.repositories.income import IncomeRepository
from personal_finance.repositories.transaction import TransactionRepository
from personal_finance.use_cases.base import UseCaseBase
from personal_finance.validation import EntityValidator


class TransactionUseCases(UseCaseBase):

    def __init__(
        self,
        transactions: TransactionRepository,
        budgets: BudgetRepository,
        incomes: IncomeRepository,
        validator: EntityValidator,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(validator, audit_logger)
        self._transactions = transactions
        self._budgets = budgets
        self._incomes = incomes

    async def _resolve_category(
        self,
        user_id: str,
        transaction_type: TransactionType,
        category_id: str,
    ) -> TransactionCategory:
        """
        Raises:
            NotFoundError: If no budget/income with that id exists
        """
        if transaction_type is TransactionType.INCOME:
            category = await self._incomes.get(user_id, category_id)
        else:
            category = await self._budgets.get(user_id, category_id)

        if category is None:
            raise NotFoundError(f"{transaction_type.value} category", category_id)
        return TransactionCategory(
            id=category.id,
            name=category.name,
            color_tag=category.color_tag,
        )

    async def create(self, user_id: str, payload: Any) -> TransactionDto:
        data = self._validator.validate_transaction_create(payload)
        category = await self._resolve_category(user_id, data.type, data.category_id)

        doc = data.model_dump(exclude={"category_id"})
        doc["signed_amount"] = signed_amount_for(data.amount, data.type)
        doc["category"] = category.model_dump()

        transaction = await self._transactions.create(user_id, doc)
        await self._audit.log_created(user_id, "transaction", transaction.id, transaction.name)
        return transaction

    async def get(self, user_id: str, transaction_id: str) -> TransactionDto:
        transaction_id = self._validator.require_id(transaction_id)
        return await self._transactions.get_or_raise(user_id, transaction_id)

    async def get_paginated(self, user_id: str, params: Any = None) -> PagedResponse:
        return await self._transactions.get_paginated(user_id, params)

    async def update(self, user_id: str, transaction_id: str, payload: Any) -> TransactionDto:
        """
        Only fields that actually change are written. signed_amount follows
        amount and type; the category is re-resolved when its id or the
        type changes.
        """
        transaction_id = self._validator.require_id(transaction_id)
        data = self._validator.validate_transaction_update(payload)
        current = await self._transactions.get_or_raise(user_id, transaction_id)

        provided = data.model_dump(exclude_unset=True)
        changes = {
            name: value
            for name, value in provided.items()
            if name != "category_id" and getattr(current, name) != value
        }

        new_type = data.type or current.type
        new_amount = data.amount or current.amount

        if "category_id" in provided or "type" in changes:
            category_id = data.category_id or current.category.id
            category = await self._resolve_category(user_id, new_type, category_id)
            if category != current.category:
                changes["category"] = category.model_dump()

        if "amount" in changes or "type" in changes:
            signed = signed_amount_for(new_amount, new_type)
            if signed != current.signed_amount:
                changes["signed_amount"] = signed

        if not changes:
            return current

        transaction = await self._transactions.update(user_id, transaction_id, changes)
        await self._audit.log_updated(user_id, "transaction", transaction_id, sorted(changes))
        return transaction

    async def delete(self, user_id: str, transaction_id: str) -> None:
        transaction_id = self._validator.require_id(transaction_id)
        await self._transactions.get_or_raise(user_id, transaction_id)
        await self._transactions.delete(user_id, transaction_id)
        await self._audit.log_deleted(user_id, "transaction", transaction_id)

    async def backfill_signed_amounts(self, user_id: str) -> int:
        """
        Maintenance: give signed_amount to transactions stored before the
        field existed. Safe to run repeatedly.
        """
        updated = await self._transactions.backfill_signed_amounts(user_id)
        if updated:
            await self._audit.log_backfill(user_id, updated)
        return updated
