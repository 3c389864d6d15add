"""
Repository Base

Repositories are the only code that sees raw store documents. They
scope every call to one user's collection, convert documents to DTOs and
wrap storage failures with context.

Error handling:
- FinanceError subclasses (NotFoundError, ...) pass through unchanged
- Anything else is logged with entity, operation and user, then
  re-raised as StorageError("Failed to <operation> <entity>: <cause>")
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Optional, TypeVar

import structlog
from pydantic import BaseModel

from personal_finance.errors import FinanceError, NotFoundError
from personal_finance.models.common import user_collection
from personal_finance.models.pagination import (
    DEFAULT_MAX_LIMIT_PER_PAGE,
    FilterOperator,
    PagedResponse,
    QuerySpec,
)
from personal_finance.queries.executor import PaginatedQueryExecutor
from personal_finance.queries.normalizer import ResultNormalizer
from personal_finance.services.storage.interface import (
    Document,
    DocumentStore,
    OrderBy,
    Predicate,
    StorageError,
)


logger = structlog.get_logger(__name__)

DtoT = TypeVar("DtoT", bound=BaseModel)


class BaseRepository(Generic[DtoT]):
    """CRUD for one entity kind, scoped per user."""

    spec: QuerySpec

    def __init__(
        self,
        store: DocumentStore,
        executor: Optional[PaginatedQueryExecutor] = None,
        max_limit_per_page: int = DEFAULT_MAX_LIMIT_PER_PAGE,
    ):
        self._store = store
        self._executor = executor or PaginatedQueryExecutor(store, max_limit_per_page)
        self._normalizer: ResultNormalizer[DtoT] = ResultNormalizer(self.spec.dto_model)

    @property
    def entity(self) -> str:
        return self.spec.kind.singular

    def collection(self, user_id: str) -> str:
        return user_collection(user_id, self.spec.kind)

    @asynccontextmanager
    async def _operation(
        self,
        operation: str,
        user_id: str,
        **info: Any,
    ) -> AsyncIterator[None]:
        try:
            yield
        except FinanceError:
            raise
        except Exception as e:
            logger.error(
                "repository_operation_failed",
                entity=self.entity,
                operation=operation,
                user_id=user_id,
                error=str(e),
                **info,
            )
            raise StorageError(f"Failed to {operation} {self.entity}: {e}") from e

    def to_dto(self, doc: Document) -> DtoT:
        return self._normalizer.to_dto(doc)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, user_id: str, entity_id: str) -> Optional[DtoT]:
        async with self._operation("get", user_id, entity_id=entity_id):
            doc = await self._store.get(self.collection(user_id), entity_id)
            return self.to_dto(doc) if doc is not None else None

    async def get_or_raise(self, user_id: str, entity_id: str) -> DtoT:
        found = await self.get(user_id, entity_id)
        if found is None:
            raise NotFoundError(self.entity, entity_id)
        return found

    async def find(
        self,
        user_id: str,
        predicates: list[Predicate],
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[DtoT]:
        async with self._operation("query", user_id):
            docs = await self._store.query(
                self.collection(user_id), predicates, order_by=order_by, limit=limit
            )
            return self._normalizer.to_dtos(docs)

    async def list_all(self, user_id: str) -> list[DtoT]:
        sort = self.spec.default_sort
        return await self.find(user_id, [], OrderBy(field=sort.field, order=sort.order))

    async def find_by_name(self, user_id: str, name: str) -> Optional[DtoT]:
        matches = await self.find(
            user_id,
            [Predicate(field="name", operator=FilterOperator.EQ, value=name)],
            limit=1,
        )
        return matches[0] if matches else None

    async def get_paginated(self, user_id: str, params: Any = None) -> PagedResponse:
        async with self._operation("list", user_id):
            return await self._executor.execute(self.collection(user_id), params, self.spec)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, user_id: str, data: Document) -> DtoT:
        async with self._operation("create", user_id, name=data.get("name")):
            collection = self.collection(user_id)
            doc_id = await self._store.create(collection, {**data, "user_id": user_id})
            doc = await self._store.get(collection, doc_id)
            if doc is None:
                raise StorageError(f"Document {doc_id} vanished after create")
            return self.to_dto(doc)

    async def update(self, user_id: str, entity_id: str, changes: Document) -> DtoT:
        async with self._operation("update", user_id, entity_id=entity_id):
            collection = self.collection(user_id)
            try:
                await self._store.update(collection, entity_id, changes)
            except NotFoundError:
                raise NotFoundError(self.entity, entity_id)
            doc = await self._store.get(collection, entity_id)
            if doc is None:
                raise NotFoundError(self.entity, entity_id)
            return self.to_dto(doc)

    async def increment(
        self,
        user_id: str,
        entity_id: str,
        field: str,
        delta: Any,
    ) -> None:
        async with self._operation("increment", user_id, entity_id=entity_id, field=field):
            try:
                await self._store.increment(self.collection(user_id), entity_id, field, delta)
            except NotFoundError:
                raise NotFoundError(self.entity, entity_id)

    async def delete(self, user_id: str, entity_id: str) -> None:
        async with self._operation("delete", user_id, entity_id=entity_id):
            await self._store.delete(self.collection(user_id), entity_id)
