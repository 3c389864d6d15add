"""
Realtime use cases.

Subscribers receive DTOs, never raw documents. A listener covers the
first page of the given params (sort, filters, search, limit_per_page);
page numbers past the first are not supported for live views.
"""

from typing import Any, Callable

from personal_finance.errors import AuthError
from personal_finance.models.budget import BUDGET_QUERY_SPEC
from personal_finance.models.common import EntityKind, user_collection
from personal_finance.models.income import INCOME_QUERY_SPEC
from personal_finance.models.pagination import (
    DEFAULT_MAX_LIMIT_PER_PAGE,
    QuerySpec,
    resolve_pagination_params,
)
from personal_finance.models.pot import POT_QUERY_SPEC
from personal_finance.models.transaction import TRANSACTION_QUERY_SPEC
from personal_finance.queries.normalizer import ResultNormalizer
from personal_finance.queries.translator import QueryTranslator
from personal_finance.services.realtime import RealtimeListenerService
from personal_finance.services.storage.interface import Document, Subscription


QUERY_SPECS: dict[EntityKind, QuerySpec] = {
    EntityKind.BUDGETS: BUDGET_QUERY_SPEC,
    EntityKind.INCOMES: INCOME_QUERY_SPEC,
    EntityKind.POTS: POT_QUERY_SPEC,
    EntityKind.TRANSACTIONS: TRANSACTION_QUERY_SPEC,
}


class RealtimeUseCases:

    def __init__(
        self,
        listeners: RealtimeListenerService,
        max_limit_per_page: int = DEFAULT_MAX_LIMIT_PER_PAGE,
    ):
        self._listeners = listeners
        self._translator = QueryTranslator()
        self._max_limit_per_page = max_limit_per_page

    def subscribe(
        self,
        user_id: str,
        kind: EntityKind,
        on_data: Callable[[list], None],
        on_error: Callable[[Exception], None],
        params: Any = None,
    ) -> Subscription:
        """
        Watch one user's entities of a kind.

        Replaces any listener the same user already had on this kind.

        Raises:
            AuthError: If user_id is empty
            ValidationError: If params are invalid
        """
        if not user_id:
            raise AuthError("You must be authenticated to listen for changes")

        kind = EntityKind(kind)
        spec = QUERY_SPECS[kind]
        resolved = resolve_pagination_params(params, spec, self._max_limit_per_page)
        query = self._translator.translate(resolved, spec)
        normalizer = ResultNormalizer(spec.dto_model)

        def on_change(docs: list[Document]) -> None:
            on_data(normalizer.to_dtos(docs))

        return self._listeners.subscribe(
            kind,
            user_id,
            user_collection(user_id, kind),
            query.predicates,
            on_change,
            on_error,
            order_by=query.order_by,
            limit=query.limit,
        )

    def unsubscribe(self, user_id: str, kind: EntityKind) -> bool:
        return self._listeners.unsubscribe(EntityKind(kind), user_id)

    def close_all(self) -> None:
        self._listeners.close_all()
