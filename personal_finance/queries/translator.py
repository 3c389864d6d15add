"""
Query Translator

Turns resolved PaginationParams into the primitives a DocumentStore
understands. The store never sees pagination params, and no entity
builds its own predicates for list views.

Search is a case-sensitive prefix match on the entity's search field,
expressed as the range [search, search + U+F8FF]. U+F8FF sorts after
every character normally found in names.
"""

from typing import Optional

from pydantic import BaseModel, Field

from personal_finance.models.pagination import (
    FilterOperator,
    PaginationParams,
    QuerySpec,
)
from personal_finance.services.storage.interface import OrderBy, Predicate


SEARCH_UPPER_BOUND = "\uf8ff"


class StoreQuery(BaseModel):
    predicates: list[Predicate] = Field(default_factory=list)
    order_by: Optional[OrderBy] = None
    offset: int = Field(default=0, ge=0)
    limit: Optional[int] = Field(default=None, gt=0)


def search_predicates(field: str, search: str) -> list[Predicate]:
    return [
        Predicate(field=field, operator=FilterOperator.GE, value=search),
        Predicate(field=field, operator=FilterOperator.LE, value=search + SEARCH_UPPER_BOUND),
    ]


class QueryTranslator:
    """params -> predicates + ordering + offset/limit"""

    def translate(self, params: PaginationParams, spec: QuerySpec) -> StoreQuery:
        predicates = [
            Predicate(field=f.field, operator=f.operator, value=f.value)
            for f in params.filters
        ]
        if params.search:
            predicates.extend(search_predicates(spec.search_field, params.search))

        sort = params.sort or spec.default_sort
        limit = params.limit_per_page

        return StoreQuery(
            predicates=predicates,
            order_by=OrderBy(field=sort.field, order=sort.order),
            offset=(params.page - 1) * limit,
            limit=limit,
        )
