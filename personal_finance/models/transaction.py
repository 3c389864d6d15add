"""
Transaction Models

A transaction is a dated money movement tagged to exactly one category:
a budget when it is an expense, an income when it is income.

Stored transactions carry two derived fields:
- signed_amount: +amount for income, -amount for expense
- category: a copy of {id, name, color_tag} of the tagged budget/income
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from personal_finance.models.common import (
    ColorTag,
    EntityDto,
    EntityKind,
    PositiveMoney,
    TRANSACTION_NAME_MAX_LENGTH,
    as_utc,
    is_emoji_only,
    reject_explicit_null,
)
from personal_finance.models.pagination import QuerySpec, SortOrder, SortParams


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def category_kind(self) -> EntityKind:
        """Which collection holds categories for this type."""
        if self is TransactionType.INCOME:
            return EntityKind.INCOMES
        return EntityKind.BUDGETS


def signed_amount_for(amount: Decimal, transaction_type: TransactionType) -> Decimal:
    """+amount for income, -amount for expense."""
    if transaction_type is TransactionType.INCOME:
        return amount
    return -amount


def _validate_emoji(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_emoji_only(v):
        raise ValueError("Must contain emoji only")
    return v


class TransactionCategory(BaseModel):
    """Snapshot of the budget or income a transaction is tagged to."""
    id: str
    name: str
    color_tag: ColorTag


class TransactionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=TRANSACTION_NAME_MAX_LENGTH)
    type: TransactionType
    amount: PositiveMoney
    recipient_or_payer: Optional[str] = Field(default=None, max_length=100)
    transaction_date: datetime
    description: Optional[str] = Field(default=None, max_length=500)
    emoji: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)

    @field_validator('emoji')
    @classmethod
    def validate_emoji(cls, v: str) -> str:
        return _validate_emoji(v)

    @field_validator('transaction_date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return as_utc(v)


class TransactionUpdate(BaseModel):
    """Partial update. Omitted fields are left untouched."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(
        default=None, min_length=1, max_length=TRANSACTION_NAME_MAX_LENGTH
    )
    type: Optional[TransactionType] = None
    amount: Optional[PositiveMoney] = None
    recipient_or_payer: Optional[str] = Field(default=None, max_length=100)
    transaction_date: Optional[datetime] = None
    description: Optional[str] = Field(default=None, max_length=500)
    emoji: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[str] = Field(default=None, min_length=1)

    @field_validator(
        'name', 'type', 'amount', 'transaction_date', 'emoji', 'category_id'
    )
    @classmethod
    def not_null(cls, v):
        return reject_explicit_null(v)

    @field_validator('emoji')
    @classmethod
    def validate_emoji(cls, v: Optional[str]) -> Optional[str]:
        return _validate_emoji(v)

    @field_validator('transaction_date')
    @classmethod
    def normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class TransactionDto(EntityDto):
    name: str
    type: TransactionType
    amount: Decimal
    signed_amount: Decimal
    recipient_or_payer: Optional[str] = None
    transaction_date: datetime
    description: Optional[str] = None
    emoji: str
    category: TransactionCategory


TRANSACTION_QUERY_SPEC = QuerySpec(
    kind=EntityKind.TRANSACTIONS,
    dto_model=TransactionDto,
    sortable_fields=frozenset({
        "transaction_date",
        "created_at",
        "updated_at",
        "name",
        "amount",
        "signed_amount",
    }),
    filterable_fields={
        "type": TransactionType,
        "category.id": str,
        "transaction_date": datetime,
        "amount": Decimal,
        "signed_amount": Decimal,
        "name": str,
        "recipient_or_payer": str,
        "emoji": str,
    },
    default_sort=SortParams(field="transaction_date", order=SortOrder.DESC),
    default_limit_per_page=10,
)
