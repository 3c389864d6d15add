"""
Income Models

An income is an earning category. Income transactions are tagged to it;
total_earned is the sum of their signed amounts.
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
    reject_explicit_null,
)
from personal_finance.models.pagination import QuerySpec, SortOrder, SortParams
from personal_finance.models.transaction import TransactionDto


class IncomeCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: EntityName
    color_tag: ColorTag


class IncomeUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    color_tag: Optional[ColorTag] = None

    @field_validator('name', 'color_tag')
    @classmethod
    def not_null(cls, v):
        return reject_explicit_null(v)


class IncomeDto(EntityDto):
    name: str
    color_tag: str


class IncomeWithTransactionsDto(IncomeDto):
    total_earned: Decimal = Decimal("0")
    latest_transactions: list[TransactionDto] = Field(default_factory=list)


class IncomesSummaryDto(BaseModel):
    incomes: list[IncomeWithTransactionsDto] = Field(default_factory=list)
    total_earned: Decimal = Decimal("0")
    count: int = 0


INCOME_QUERY_SPEC = QuerySpec(
    kind=EntityKind.INCOMES,
    dto_model=IncomeDto,
    sortable_fields=frozenset({"created_at", "updated_at", "name"}),
    filterable_fields={
        "name": str,
        "color_tag": str,
        "created_at": datetime,
    },
    default_sort=SortParams(field="created_at", order=SortOrder.DESC),
    default_limit_per_page=6,
)
