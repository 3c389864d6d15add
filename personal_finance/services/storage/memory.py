"""
In-Memory Document Store

Backs the test-suite and local runs. Documents are kept per collection in
insertion order and every read returns a copy, so callers can never
mutate stored state by accident.

Listeners are notified synchronously, right after the write that changed
their collection.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import structlog

from personal_finance.errors import NotFoundError
from personal_finance.services.storage.interface import (
    Document,
    DocumentStore,
    OnChange,
    OnError,
    OrderBy,
    Predicate,
    Subscription,
    apply_query,
    matches_all,
)


logger = structlog.get_logger(__name__)


class InMemorySubscription(Subscription):
    def __init__(
        self,
        store: "InMemoryDocumentStore",
        collection: str,
        predicates: list[Predicate],
        on_change: OnChange,
        on_error: OnError,
        order_by: Optional[OrderBy],
        limit: Optional[int],
    ):
        self._store = store
        self.collection = collection
        self.predicates = predicates
        self.on_change = on_change
        self.on_error = on_error
        self.order_by = order_by
        self.limit = limit
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._store._remove_subscription(self)

    def deliver(self) -> None:
        """Push the current result set, or report the failure and stop."""
        if self._closed:
            return
        try:
            snapshot = self._store._snapshot(
                self.collection, self.predicates, self.order_by, self.limit
            )
            self.on_change(snapshot)
        except Exception as e:
            logger.warning(
                "listener_failed",
                collection=self.collection,
                error=str(e),
            )
            self.close()
            self.on_error(e)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed implementation of DocumentStore."""

    def __init__(self):
        self._collections: dict[str, dict[str, Document]] = {}
        self._subscriptions: list[InMemorySubscription] = []

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _collection(self, collection: str) -> dict[str, Document]:
        return self._collections.setdefault(collection, {})

    def _snapshot(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Document]:
        docs = list(self._collections.get(collection, {}).values())
        return copy.deepcopy(apply_query(docs, predicates, order_by, offset, limit))

    def _notify(self, collection: str) -> None:
        for subscription in list(self._subscriptions):
            if subscription.collection == collection:
                subscription.deliver()

    def _remove_subscription(self, subscription: InMemorySubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    # -------------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------------

    async def create(self, collection: str, doc: Document) -> str:
        doc_id = uuid4().hex
        now = self._now()
        stored = copy.deepcopy(doc)
        stored.update({"id": doc_id, "created_at": now, "updated_at": now})
        self._collection(collection)[doc_id] = stored
        self._notify(collection)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def query(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: Optional[OrderBy] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Document]:
        return self._snapshot(collection, predicates, order_by, limit, offset)

    async def count(self, collection: str, predicates: list[Predicate]) -> int:
        docs = self._collections.get(collection, {}).values()
        return sum(1 for doc in docs if matches_all(doc, predicates))

    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        stored = self._collections.get(collection, {}).get(doc_id)
        if stored is None:
            raise NotFoundError("document", doc_id)
        changes = {
            key: copy.deepcopy(value)
            for key, value in partial.items()
            if key not in ("id", "created_at")
        }
        stored.update(changes)
        stored["updated_at"] = self._now()
        self._notify(collection)

    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        delta: Any,
    ) -> None:
        stored = self._collections.get(collection, {}).get(doc_id)
        if stored is None:
            raise NotFoundError("document", doc_id)
        current = stored.get(field) or 0
        stored[field] = current + delta
        stored["updated_at"] = self._now()
        self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        removed = self._collections.get(collection, {}).pop(doc_id, None)
        if removed is not None:
            self._notify(collection)

    def listen(
        self,
        collection: str,
        predicates: list[Predicate],
        on_change: OnChange,
        on_error: OnError,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> Subscription:
        subscription = InMemorySubscription(
            self,
            collection,
            list(predicates),
            on_change,
            on_error,
            order_by,
            limit,
        )
        self._subscriptions.append(subscription)
        subscription.deliver()
        return subscription
