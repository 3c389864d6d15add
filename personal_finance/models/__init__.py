"""
Data Models Package

This package contains all Pydantic models used in the Personal Finance system.
All data crossing a use-case boundary must conform to these schemas.
"""

from personal_finance.models.common import (
    EntityDto,
    EntityKind,
    MoneyOperation,
    format_validation_errors,
    is_emoji_only,
    user_collection,
)
from personal_finance.models.pagination import (
    FilterOperator,
    FilterParam,
    PageMeta,
    PageRequest,
    PagedResponse,
    PaginationMeta,
    PaginationParams,
    QuerySpec,
    SortOrder,
    SortParams,
    resolve_pagination_params,
)
from personal_finance.models.transaction import (
    TRANSACTION_QUERY_SPEC,
    TransactionCategory,
    TransactionCreate,
    TransactionDto,
    TransactionType,
    TransactionUpdate,
    signed_amount_for,
)
from personal_finance.models.budget import (
    BUDGET_QUERY_SPEC,
    BudgetCreate,
    BudgetDto,
    BudgetsSummaryDto,
    BudgetUpdate,
    BudgetWithTransactionsDto,
)
from personal_finance.models.income import (
    INCOME_QUERY_SPEC,
    IncomeCreate,
    IncomeDto,
    IncomesSummaryDto,
    IncomeUpdate,
    IncomeWithTransactionsDto,
)
from personal_finance.models.pot import (
    POT_QUERY_SPEC,
    PotCreate,
    PotDto,
    PotUpdate,
)
from personal_finance.models.user import AuthUser
from personal_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Common
    "EntityDto",
    "EntityKind",
    "MoneyOperation",
    "format_validation_errors",
    "is_emoji_only",
    "user_collection",
    # Pagination
    "FilterOperator",
    "FilterParam",
    "PageMeta",
    "PageRequest",
    "PagedResponse",
    "PaginationMeta",
    "PaginationParams",
    "QuerySpec",
    "SortOrder",
    "SortParams",
    "resolve_pagination_params",
    # Transactions
    "TRANSACTION_QUERY_SPEC",
    "TransactionCategory",
    "TransactionCreate",
    "TransactionDto",
    "TransactionType",
    "TransactionUpdate",
    "signed_amount_for",
    # Budgets
    "BUDGET_QUERY_SPEC",
    "BudgetCreate",
    "BudgetDto",
    "BudgetsSummaryDto",
    "BudgetUpdate",
    "BudgetWithTransactionsDto",
    # Incomes
    "INCOME_QUERY_SPEC",
    "IncomeCreate",
    "IncomeDto",
    "IncomesSummaryDto",
    "IncomeUpdate",
    "IncomeWithTransactionsDto",
    # Pots
    "POT_QUERY_SPEC",
    "PotCreate",
    "PotDto",
    "PotUpdate",
    # Auth
    "AuthUser",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
