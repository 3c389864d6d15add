"""Transaction persistence, plus the per-category aggregates list views need."""

from decimal import Decimal

from personal_finance.models.pagination import FilterOperator, SortOrder
from personal_finance.models.transaction import (
    TRANSACTION_QUERY_SPEC,
    TransactionDto,
    TransactionType,
    signed_amount_for,
)
from personal_finance.repositories.base import BaseRepository
from personal_finance.services.storage.interface import OrderBy, Predicate


def _category_predicates(category_id: str, transaction_type: TransactionType) -> list[Predicate]:
    return [
        Predicate(field="category.id", operator=FilterOperator.EQ, value=category_id),
        Predicate(field="type", operator=FilterOperator.EQ, value=transaction_type),
    ]


class TransactionRepository(BaseRepository[TransactionDto]):
    spec = TRANSACTION_QUERY_SPEC

    async def latest_for_category(
        self,
        user_id: str,
        category_id: str,
        transaction_type: TransactionType,
        limit: int,
    ) -> list[TransactionDto]:
        if limit <= 0:
            return []
        return await self.find(
            user_id,
            _category_predicates(category_id, transaction_type),
            OrderBy(field="transaction_date", order=SortOrder.DESC),
            limit,
        )

    async def total_signed_for_category(
        self,
        user_id: str,
        category_id: str,
        transaction_type: TransactionType,
    ) -> Decimal:
        transactions = await self.find(
            user_id, _category_predicates(category_id, transaction_type)
        )
        return sum((t.signed_amount for t in transactions), Decimal("0"))

    async def backfill_signed_amounts(self, user_id: str) -> int:
        """
        Write signed_amount on documents stored without one.

        Works on raw documents, since those cannot be read as DTOs yet.
        Returns the number of documents updated.
        """
        async with self._operation("backfill", user_id):
            collection = self.collection(user_id)
            docs = await self._store.query(collection, [])

            updated = 0
            for doc in docs:
                if doc.get("signed_amount") is not None:
                    continue
                amount = Decimal(str(doc["amount"]))
                signed = signed_amount_for(amount, TransactionType(doc["type"]))
                await self._store.update(collection, doc["id"], {"signed_amount": signed})
                updated += 1
            return updated
