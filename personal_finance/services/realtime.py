"""
Realtime Listener Service

Keeps at most one live subscription per (entity kind, user). Subscribing
again for the same key closes the previous subscription first, so a
client re-rendering a list never ends up with duplicate listeners.
Subscriptions that end on their own (closed by the caller, or by the
store after an error) are dropped the next time the map is touched.
"""

from typing import Optional

import structlog

from personal_finance.models.common import EntityKind
from personal_finance.services.storage.interface import (
    DocumentStore,
    OnChange,
    OnError,
    OrderBy,
    Predicate,
    Subscription,
)


logger = structlog.get_logger(__name__)

ListenerKey = tuple[EntityKind, str]


class RealtimeListenerService:

    def __init__(self, store: DocumentStore):
        self._store = store
        self._subscriptions: dict[ListenerKey, Subscription] = {}

    def subscribe(
        self,
        kind: EntityKind,
        user_id: str,
        collection: str,
        predicates: list[Predicate],
        on_change: OnChange,
        on_error: OnError,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> Subscription:
        key = (kind, user_id)
        self.unsubscribe(kind, user_id)
        self._prune()

        subscription = self._store.listen(
            collection,
            predicates,
            on_change,
            on_error,
            order_by=order_by,
            limit=limit,
        )
        self._subscriptions[key] = subscription
        logger.debug("listener_registered", kind=kind.value, user_id=user_id)
        return subscription

    def unsubscribe(self, kind: EntityKind, user_id: str) -> bool:
        """Close the listener for a key. Returns False if none was live."""
        subscription = self._subscriptions.pop((kind, user_id), None)
        if subscription is None or subscription.closed:
            return False
        subscription.close()
        logger.debug("listener_closed", kind=kind.value, user_id=user_id)
        return True

    def close_all(self) -> None:
        for kind, user_id in list(self._subscriptions):
            self.unsubscribe(kind, user_id)

    @property
    def active_count(self) -> int:
        self._prune()
        return len(self._subscriptions)

    def _prune(self) -> None:
        for key, subscription in list(self._subscriptions.items()):
            if subscription.closed:
                del self._subscriptions[key]
                logger.debug("listener_pruned", kind=key[0].value, user_id=key[1])
