"""
Abstract Storage Interface

DESIGN DECISION: Business logic talks to a small document-store contract,
never to a concrete backend. This allows us to:
1. Run the whole application against an in-memory store in tests
2. Keep Google Sheets (or anything else) behind the same calls
3. Inject the store explicitly instead of reaching for a global

The interface is intentionally simple - we're not building a full ORM.
Documents are plain dicts; collections are slash-separated paths such as
"users/<uid>/budgets".

Query semantics shared by every implementation live here as well
(predicate matching, dotted field lookup, ordering), so that all
backends agree on what a query means.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict

from personal_finance.errors import NotFoundError
from personal_finance.models.pagination import FilterOperator, SortOrder


Document = dict[str, Any]
OnChange = Callable[[list[Document]], None]
OnError = Callable[[Exception], None]


# =============================================================================
# QUERY PRIMITIVES
# =============================================================================

class Predicate(BaseModel):
    """`field operator value`, evaluated against a document."""
    model_config = ConfigDict(frozen=True)

    field: str
    operator: FilterOperator
    value: Any = None


class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    order: SortOrder = SortOrder.ASC


_MISSING = object()


def resolve_field(doc: Document, field: str) -> Any:
    """Look up a dotted field ("category.id"). Missing fields are None."""
    value: Any = doc
    for part in field.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part, _MISSING)
        if value is _MISSING:
            return None
    return value


def matches(doc: Document, predicate: Predicate) -> bool:
    """
    Evaluate one predicate.

    Ordering comparisons never match a missing value. A stored value that
    cannot be compared with the predicate value (e.g. str against Decimal)
    raises StorageError rather than quietly dropping the document.
    """
    actual = resolve_field(doc, predicate.field)
    expected = predicate.value
    op = predicate.operator

    try:
        if op is FilterOperator.EQ:
            return actual == expected
        if op is FilterOperator.NE:
            return actual != expected
        if op is FilterOperator.IN:
            return actual in expected
        if op is FilterOperator.NOT_IN:
            return actual not in expected

        if actual is None or expected is None:
            return False
        if op is FilterOperator.LT:
            return actual < expected
        if op is FilterOperator.LE:
            return actual <= expected
        if op is FilterOperator.GT:
            return actual > expected
        if op is FilterOperator.GE:
            return actual >= expected
    except TypeError as e:
        raise StorageError(
            f"Cannot compare '{predicate.field}' value {actual!r} with {expected!r}"
        ) from e

    raise ValueError(f"Unsupported operator: {op}")


def matches_all(doc: Document, predicates: list[Predicate]) -> bool:
    return all(matches(doc, predicate) for predicate in predicates)


def sort_documents(docs: list[Document], order_by: Optional[OrderBy]) -> list[Document]:
    """
    Stable single-field sort. Documents without the field sort first
    ascending (last descending); ties keep their incoming order.
    """
    if order_by is None:
        return list(docs)

    def key(doc: Document):
        value = resolve_field(doc, order_by.field)
        return (value is not None, value if value is not None else 0)

    try:
        return sorted(docs, key=key, reverse=order_by.order is SortOrder.DESC)
    except TypeError:
        # Mixed types in one field: fall back to comparing text
        return sorted(
            docs,
            key=lambda d: (
                resolve_field(d, order_by.field) is not None,
                str(resolve_field(d, order_by.field)),
            ),
            reverse=order_by.order is SortOrder.DESC,
        )


def apply_query(
    docs: list[Document],
    predicates: list[Predicate],
    order_by: Optional[OrderBy] = None,
    offset: int = 0,
    limit: Optional[int] = None,
) -> list[Document]:
    """Filter, sort and slice a list of documents."""
    selected = [doc for doc in docs if matches_all(doc, predicates)]
    selected = sort_documents(selected, order_by)
    if limit is None:
        return selected[offset:]
    return selected[offset:offset + limit]


# =============================================================================
# SUBSCRIPTION
# =============================================================================

class Subscription(ABC):
    """
    Handle for a realtime listener.

    Closing is idempotent. Also usable as a context manager.
    """

    @property
    @abstractmethod
    def closed(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop delivering notifications."""
        pass

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# =============================================================================
# DOCUMENT STORE
# =============================================================================

class DocumentStore(ABC):
    """
    Abstract interface for document storage operations.

    Any storage implementation must implement these methods.
    Implementations assign id, created_at and updated_at themselves.
    """

    @abstractmethod
    async def create(self, collection: str, doc: Document) -> str:
        """
        Store a new document.

        Args:
            collection: Collection path
            doc: Document fields (without id/timestamps)

        Returns:
            The assigned document id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """
        Retrieve a document by id.

        Returns:
            The document (with "id") if found, None otherwise
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: Optional[OrderBy] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """
        List documents matching every predicate.

        Args:
            collection: Collection path
            predicates: Conditions, ANDed
            order_by: Single-field ordering
            offset: Number of matching documents to skip
            limit: Maximum number of documents to return

        Returns:
            Matching documents in order
        """
        pass

    @abstractmethod
    async def count(self, collection: str, predicates: list[Predicate]) -> int:
        """Number of documents matching every predicate."""
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        """
        Merge fields into an existing document and refresh updated_at.

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        delta: Any,
    ) -> None:
        """
        Atomically add delta to a numeric field.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""
        pass

    @abstractmethod
    def listen(
        self,
        collection: str,
        predicates: list[Predicate],
        on_change: OnChange,
        on_error: OnError,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> Subscription:
        """
        Watch a query.

        on_change receives the full current result set, first right away
        and then after every change. on_error is called once if the
        listener fails; no further notifications follow.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


__all__ = [
    "ConnectionError",
    "Document",
    "DocumentStore",
    "NotFoundError",
    "OnChange",
    "OnError",
    "OrderBy",
    "Predicate",
    "StorageError",
    "Subscription",
    "apply_query",
    "matches",
    "matches_all",
    "resolve_field",
    "sort_documents",
]
