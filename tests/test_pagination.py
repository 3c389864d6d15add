"""
Tests for the paginated query builder: parameter model, translator,
normalizer and executor.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from personal_finance.errors import ValidationError
from personal_finance.models import (
    BUDGET_QUERY_SPEC,
    POT_QUERY_SPEC,
    TRANSACTION_QUERY_SPEC,
    BudgetDto,
    FilterOperator,
    PaginationParams,
    SortOrder,
    TransactionType,
    resolve_pagination_params,
)
from personal_finance.queries import (
    PaginatedQueryExecutor,
    QueryTranslator,
    ResultNormalizer,
    next_page_for,
)
from personal_finance.queries.translator import SEARCH_UPPER_BOUND
from personal_finance.services.storage import InMemoryDocumentStore


class TestResolvePaginationParams:
    """Default filling and rejection of bad params."""

    def test_defaults_for_budgets(self):
        params = resolve_pagination_params(None, BUDGET_QUERY_SPEC)
        assert params.page == 1
        assert params.limit_per_page == 6
        assert params.sort.field == "created_at"
        assert params.sort.order is SortOrder.DESC
        assert params.filters == []
        assert params.search is None

    def test_defaults_for_transactions(self):
        params = resolve_pagination_params({}, TRANSACTION_QUERY_SPEC)
        assert params.limit_per_page == 10
        assert params.sort.field == "transaction_date"

    def test_partial_input_keeps_given_values(self):
        params = resolve_pagination_params(
            {"pagination": {"page": 3}, "sort": {"field": "name", "order": "asc"}},
            BUDGET_QUERY_SPEC,
        )
        assert params.page == 3
        assert params.limit_per_page == 6
        assert params.sort.field == "name"
        assert params.sort.order is SortOrder.ASC

    def test_accepts_params_instance(self):
        raw = PaginationParams(search="Gro")
        params = resolve_pagination_params(raw, BUDGET_QUERY_SPEC)
        assert params.search == "Gro"
        # The caller's object is not mutated
        assert raw.sort is None

    def test_blank_search_is_dropped(self):
        params = resolve_pagination_params({"search": "   "}, BUDGET_QUERY_SPEC)
        assert params.search is None

    @pytest.mark.parametrize("page", [0, -1])
    def test_rejects_non_positive_page(self, page):
        with pytest.raises(ValidationError) as exc_info:
            resolve_pagination_params({"pagination": {"page": page}}, BUDGET_QUERY_SPEC)
        assert "pagination.page" in exc_info.value.errors

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_pagination_params(
                {"pagination": {"limit_per_page": 0}}, BUDGET_QUERY_SPEC
            )
        assert "pagination.limit_per_page" in exc_info.value.errors

    def test_rejects_limit_over_maximum(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_pagination_params(
                {"pagination": {"limit_per_page": 101}}, BUDGET_QUERY_SPEC
            )
        assert "pagination.limit_per_page" in exc_info.value.errors

    def test_custom_maximum(self):
        params = resolve_pagination_params(
            {"pagination": {"limit_per_page": 150}},
            BUDGET_QUERY_SPEC,
            max_limit_per_page=200,
        )
        assert params.limit_per_page == 150

    def test_rejects_unknown_sort_field(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_pagination_params({"sort": {"field": "user_id"}}, BUDGET_QUERY_SPEC)
        assert "sort.field" in exc_info.value.errors

    def test_rejects_unknown_filter_field(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_pagination_params(
                {"filters": [
                    {"field": "name", "operator": "==", "value": "Rent"},
                    {"field": "user_id", "operator": "==", "value": "u2"},
                ]},
                BUDGET_QUERY_SPEC,
            )
        assert "filters.1.field" in exc_info.value.errors
        assert "filters.0.field" not in exc_info.value.errors

    def test_rejects_unknown_operator(self):
        with pytest.raises(ValidationError):
            resolve_pagination_params(
                {"filters": [{"field": "name", "operator": "like", "value": "x"}]},
                BUDGET_QUERY_SPEC,
            )

    def test_in_operator_requires_list(self):
        with pytest.raises(ValidationError):
            resolve_pagination_params(
                {"filters": [{"field": "name", "operator": "in", "value": "Rent"}]},
                BUDGET_QUERY_SPEC,
            )

    def test_filter_values_are_coerced(self):
        params = resolve_pagination_params(
            {"filters": [
                {"field": "type", "operator": "==", "value": "income"},
                {"field": "amount", "operator": ">=", "value": "10.5"},
                {"field": "transaction_date", "operator": "<", "value": "2024-01-01T00:00:00Z"},
            ]},
            TRANSACTION_QUERY_SPEC,
        )
        type_filter, amount_filter, date_filter = params.filters
        assert type_filter.value is TransactionType.INCOME
        assert amount_filter.value == Decimal("10.5")
        assert isinstance(date_filter.value, datetime)

    def test_naive_date_filters_become_utc(self):
        params = resolve_pagination_params(
            {"filters": [
                {"field": "transaction_date", "operator": ">=", "value": "2024-03-01"},
                {"field": "transaction_date", "operator": "in", "value": ["2024-03-01T08:30:00", None]},
            ]},
            TRANSACTION_QUERY_SPEC,
        )
        date_filter, in_filter = params.filters
        assert date_filter.value == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert in_filter.value == [datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc), None]

    def test_bad_filter_value_is_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_pagination_params(
                {"filters": [{"field": "amount", "operator": ">", "value": "lots"}]},
                TRANSACTION_QUERY_SPEC,
            )
        assert "filters.0.value" in exc_info.value.errors

    def test_resolved_params_are_positive(self):
        for spec in (BUDGET_QUERY_SPEC, POT_QUERY_SPEC, TRANSACTION_QUERY_SPEC):
            params = resolve_pagination_params({"pagination": {}}, spec)
            assert params.page >= 1
            assert params.limit_per_page > 0


class TestQueryTranslator:

    def test_offset_and_limit(self):
        params = resolve_pagination_params(
            {"pagination": {"page": 3, "limit_per_page": 5}}, BUDGET_QUERY_SPEC
        )
        query = QueryTranslator().translate(params, BUDGET_QUERY_SPEC)
        assert query.offset == 10
        assert query.limit == 5
        assert query.order_by.field == "created_at"

    def test_search_is_a_prefix_range_after_filters(self):
        params = resolve_pagination_params(
            {
                "search": "Gro",
                "filters": [{"field": "color_tag", "operator": "==", "value": "#000000"}],
            },
            BUDGET_QUERY_SPEC,
        )
        predicates = QueryTranslator().translate(params, BUDGET_QUERY_SPEC).predicates

        assert [p.field for p in predicates] == ["color_tag", "name", "name"]
        assert predicates[1].operator is FilterOperator.GE
        assert predicates[1].value == "Gro"
        assert predicates[2].operator is FilterOperator.LE
        assert predicates[2].value == "Gro" + SEARCH_UPPER_BOUND

    def test_no_search_no_predicates(self):
        params = resolve_pagination_params(None, BUDGET_QUERY_SPEC)
        assert QueryTranslator().translate(params, BUDGET_QUERY_SPEC).predicates == []


class TestResultNormalizer:

    def _doc(self, i):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return {
            "id": f"b{i}",
            "user_id": "secret-owner",
            "name": f"Budget {i}",
            "maximum_spending": Decimal("100"),
            "color_tag": "#000000",
            "created_at": now,
            "updated_at": now,
            "internal_flag": True,
        }

    def test_projection_drops_undeclared_fields(self):
        dto = ResultNormalizer(BudgetDto).to_dto(self._doc(1))
        dumped = dto.model_dump()
        assert "user_id" not in dumped
        assert "internal_flag" not in dumped
        assert dumped["id"] == "b1"

    def test_full_page_reports_next_page(self):
        params = resolve_pagination_params(
            {"pagination": {"limit_per_page": 2}}, BUDGET_QUERY_SPEC
        )
        page = ResultNormalizer(BudgetDto).to_page(
            [self._doc(1), self._doc(2)], params, total_items=2
        )
        # Heuristic false positive: nothing follows, but the page was full
        assert page.meta.pagination.next_page == 2
        assert page.meta.pagination.total_items == 2

    def test_short_page_has_no_next_page(self):
        params = resolve_pagination_params(None, BUDGET_QUERY_SPEC)
        page = ResultNormalizer(BudgetDto).to_page([self._doc(1)], params)
        assert page.meta.pagination.next_page is None
        assert page.meta.pagination.previous_page is None

    def test_previous_page(self):
        params = resolve_pagination_params({"pagination": {"page": 2}}, BUDGET_QUERY_SPEC)
        page = ResultNormalizer(BudgetDto).to_page([], params)
        assert page.meta.pagination.previous_page == 1
        assert page.data == []

    def test_meta_echoes_params(self):
        params = resolve_pagination_params({"search": "Bud"}, BUDGET_QUERY_SPEC)
        page = ResultNormalizer(BudgetDto).to_page([], params)
        assert page.meta.search == "Bud"
        assert page.meta.sort.field == "created_at"

    @pytest.mark.parametrize("page,limit,returned,expected", [
        (1, 6, 6, 2),
        (1, 6, 5, None),
        (4, 10, 10, 5),
        (2, 10, 0, None),
    ])
    def test_next_page_for(self, page, limit, returned, expected):
        assert next_page_for(page, limit, returned) == expected


class TestPaginatedQueryExecutor:

    @pytest.mark.asyncio
    async def test_pages_through_collection(self):
        store = InMemoryDocumentStore()
        for name in ["Alpha", "Bravo", "Charlie", "Delta", "Echo"]:
            await store.create("users/u/budgets", {
                "name": name,
                "maximum_spending": Decimal("10"),
                "color_tag": "#000000",
            })

        executor = PaginatedQueryExecutor(store)
        raw = {"sort": {"field": "name", "order": "asc"}, "pagination": {"limit_per_page": 2}}

        first = await executor.execute("users/u/budgets", raw, BUDGET_QUERY_SPEC)
        assert [b.name for b in first.data] == ["Alpha", "Bravo"]
        assert first.meta.pagination.next_page == 2
        assert first.meta.pagination.total_items == 5

        raw["pagination"]["page"] = 3
        last = await executor.execute("users/u/budgets", raw, BUDGET_QUERY_SPEC)
        assert [b.name for b in last.data] == ["Echo"]
        assert last.meta.pagination.next_page is None
        assert last.meta.pagination.previous_page == 2

    @pytest.mark.asyncio
    async def test_invalid_params_never_reach_store(self):
        class ExplodingStore(InMemoryDocumentStore):
            async def query(self, *args, **kwargs):
                raise AssertionError("store should not be queried")

        executor = PaginatedQueryExecutor(ExplodingStore())
        with pytest.raises(ValidationError):
            await executor.execute(
                "users/u/budgets", {"pagination": {"page": 0}}, BUDGET_QUERY_SPEC
            )
