"""
Pot Models

A pot is a savings goal. total_saved only changes through add/withdraw
money operations, which is why the update schema does not accept it.
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
    NonNegativeMoney,
    PositiveMoney,
    reject_explicit_null,
)
from personal_finance.models.pagination import QuerySpec, SortOrder, SortParams


class PotCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: EntityName
    target: Optional[PositiveMoney] = None
    color_tag: ColorTag
    total_saved: NonNegativeMoney = Decimal("0")


class PotUpdate(BaseModel):
    """target may be cleared with an explicit null; total_saved is not accepted."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    target: Optional[PositiveMoney] = None
    color_tag: Optional[ColorTag] = None

    @field_validator('name', 'color_tag')
    @classmethod
    def not_null(cls, v):
        return reject_explicit_null(v)


class PotDto(EntityDto):
    """
    total_saved is not constrained here: concurrent withdrawals can
    drive it below zero and such a pot must still be readable.
    """
    name: str
    target: Optional[Decimal] = None
    color_tag: str
    total_saved: Decimal = Decimal("0")


POT_QUERY_SPEC = QuerySpec(
    kind=EntityKind.POTS,
    dto_model=PotDto,
    sortable_fields=frozenset({
        "created_at", "updated_at", "name", "target", "total_saved",
    }),
    filterable_fields={
        "name": str,
        "color_tag": str,
        "target": Decimal,
        "total_saved": Decimal,
        "created_at": datetime,
    },
    default_sort=SortParams(field="created_at", order=SortOrder.DESC),
    default_limit_per_page=6,
)
