"""Paginated query package."""

from personal_finance.queries.executor import PaginatedQueryExecutor
from personal_finance.queries.normalizer import (
    ResultNormalizer,
    next_page_for,
    project,
)
from personal_finance.queries.translator import (
    QueryTranslator,
    StoreQuery,
    search_predicates,
)

__all__ = [
    "PaginatedQueryExecutor",
    "QueryTranslator",
    "ResultNormalizer",
    "StoreQuery",
    "next_page_for",
    "project",
    "search_predicates",
]
