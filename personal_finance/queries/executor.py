"""
Paginated Query Executor

DESIGN DECISION: Every entity's paginated list goes through this one
executor. Repositories supply a collection and a QuerySpec; the executor
owns parameter resolution, translation, the store round-trips and
normalization.

The total count is a second store call made with the same predicates.
The two reads are not a snapshot: a write between them can make
total_items disagree with the page by one.
"""

from typing import Any, Optional

from personal_finance.models.pagination import (
    DEFAULT_MAX_LIMIT_PER_PAGE,
    PagedResponse,
    QuerySpec,
    resolve_pagination_params,
)
from personal_finance.queries.normalizer import ResultNormalizer
from personal_finance.queries.translator import QueryTranslator
from personal_finance.services.storage.interface import DocumentStore, Predicate


class PaginatedQueryExecutor:
    """
    Runs paginated queries against a document store.

    GUARANTEES:
    - Invalid params fail before the store is touched
    - Only DTOs are returned, never raw documents
    """

    def __init__(
        self,
        store: DocumentStore,
        max_limit_per_page: int = DEFAULT_MAX_LIMIT_PER_PAGE,
        translator: Optional[QueryTranslator] = None,
    ):
        self._store = store
        self._max_limit_per_page = max_limit_per_page
        self._translator = translator or QueryTranslator()

    async def execute(
        self,
        collection: str,
        raw_params: Any,
        spec: QuerySpec,
        extra_predicates: Optional[list[Predicate]] = None,
    ) -> PagedResponse:
        """
        Resolve, translate, fetch and normalize one page.

        Args:
            collection: Collection path to read
            raw_params: None, a mapping, or PaginationParams
            spec: What the entity allows
            extra_predicates: Fixed conditions ANDed before the caller's filters

        Raises:
            ValidationError: If the params are invalid
            StorageError: If the store fails
        """
        params = resolve_pagination_params(
            raw_params, spec, self._max_limit_per_page
        )
        query = self._translator.translate(params, spec)
        predicates = list(extra_predicates or []) + query.predicates

        docs = await self._store.query(
            collection,
            predicates,
            order_by=query.order_by,
            offset=query.offset,
            limit=query.limit,
        )
        total_items = await self._store.count(collection, predicates)

        return ResultNormalizer(spec.dto_model).to_page(docs, params, total_items)
