"""
Budget Models

A budget is a spending category with a cap. Expense transactions are
tagged to budgets; total_spending is derived from them, never stored.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from personal_finance.models.common import (
    ColorTag,
    EntityDto,
    EntityKind,
    EntityName,
    NAME_MAX_LENGTH,
    PositiveMoney,
    reject_explicit_null,
)
from personal_finance.models.pagination import QuerySpec, SortOrder, SortParams
from personal_finance.models.transaction import TransactionDto


class BudgetCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: EntityName
    maximum_spending: PositiveMoney
    color_tag: ColorTag


class BudgetUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    maximum_spending: Optional[PositiveMoney] = None
    color_tag: Optional[ColorTag] = None

    @field_validator('name', 'maximum_spending', 'color_tag')
    @classmethod
    def not_null(cls, v):
        return reject_explicit_null(v)


class BudgetDto(EntityDto):
    name: str
    maximum_spending: Decimal
    color_tag: str


class BudgetWithTransactionsDto(BudgetDto):
    """A budget, what was spent against it, and its latest transactions."""
    total_spending: Decimal = Decimal("0")
    latest_transactions: list[TransactionDto] = Field(default_factory=list)


class BudgetsSummaryDto(BaseModel):
    """
    Overview card data.

    budgets holds the top budgets by maximum_spending; the totals cover
    every budget the user has, not just the listed ones.
    """
    budgets: list[BudgetWithTransactionsDto] = Field(default_factory=list)
    total_maximum_spending: Decimal = Decimal("0")
    total_spending: Decimal = Decimal("0")
    count: int = 0


BUDGET_QUERY_SPEC = QuerySpec(
    kind=EntityKind.BUDGETS,
    dto_model=BudgetDto,
    sortable_fields=frozenset({
        "created_at", "updated_at", "name", "maximum_spending",
    }),
    filterable_fields={
        "name": str,
        "maximum_spending": Decimal,
        "color_tag": str,
        "created_at": datetime,
    },
    default_sort=SortParams(field="created_at", order=SortOrder.DESC),
    default_limit_per_page=6,
)
