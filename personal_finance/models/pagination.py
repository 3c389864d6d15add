"""
Pagination Models

One parameter shape and one response shape serve every entity list.

A caller sends a PaginationParams (possibly partial, possibly a plain dict);
resolve_pagination_params() fills the per-entity defaults from a QuerySpec
and rejects anything the entity cannot be sorted or filtered by.

CRITICAL: next_page is a heuristic. It is set whenever the page came back
full, so a page that is exactly full with nothing after it still reports a
next page. total_items is returned beside it for callers that need the
exact answer.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from personal_finance.errors import ValidationError
from personal_finance.models.common import (
    EntityKind,
    UtcDatetime,
    format_validation_errors,
)


T = TypeVar("T")

DEFAULT_MAX_LIMIT_PER_PAGE = 100


# =============================================================================
# ENUMS
# =============================================================================

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterOperator(str, Enum):
    """Comparison operators a filter may use."""
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"
    NOT_IN = "not-in"

    @property
    def takes_list(self) -> bool:
        return self in (FilterOperator.IN, FilterOperator.NOT_IN)


# =============================================================================
# REQUEST
# =============================================================================

class SortParams(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    field: str = Field(..., min_length=1)
    order: SortOrder = SortOrder.DESC


class FilterParam(BaseModel):
    """A single `field operator value` condition. Filters are ANDed."""
    model_config = ConfigDict(str_strip_whitespace=True)

    field: str = Field(..., min_length=1)
    operator: FilterOperator
    value: Any = None

    @model_validator(mode='after')
    def check_list_operators(self) -> 'FilterParam':
        if self.operator.takes_list and not isinstance(self.value, (list, tuple)):
            raise ValueError(f"Operator '{self.operator.value}' requires a list value")
        return self


class PageRequest(BaseModel):
    page: int = Field(default=1, ge=1)
    limit_per_page: Optional[int] = Field(default=None, gt=0)


class PaginationParams(BaseModel):
    """
    Query parameters for any paginated list.

    Every part is optional on input. After resolve_pagination_params()
    sort and pagination.limit_per_page are always set.
    """

    sort: Optional[SortParams] = None
    filters: list[FilterParam] = Field(default_factory=list)
    search: Optional[str] = None
    pagination: PageRequest = Field(default_factory=PageRequest)

    @field_validator('search')
    @classmethod
    def blank_search_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def page(self) -> int:
        return self.pagination.page

    @property
    def limit_per_page(self) -> int:
        if self.pagination.limit_per_page is None:
            raise ValueError("Pagination params have not been resolved")
        return self.pagination.limit_per_page


class QuerySpec(BaseModel):
    """
    What one entity allows a paginated query to do.

    filterable_fields maps a (possibly dotted) document field to the type
    filter values are coerced to before they reach the store.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: EntityKind
    dto_model: type[BaseModel]
    sortable_fields: frozenset[str]
    filterable_fields: dict[str, Any]
    default_sort: SortParams
    default_limit_per_page: int = Field(gt=0)
    search_field: str = "name"


# =============================================================================
# RESPONSE
# =============================================================================

class PaginationMeta(BaseModel):
    page: int
    limit_per_page: int
    total_items: Optional[int] = None
    next_page: Optional[int] = None
    previous_page: Optional[int] = None


class PageMeta(BaseModel):
    pagination: PaginationMeta
    sort: SortParams
    filters: list[FilterParam] = Field(default_factory=list)
    search: Optional[str] = None


class PagedResponse(BaseModel, Generic[T]):
    """One page of DTOs plus the parameters that produced it."""
    data: list[T]
    meta: PageMeta


# =============================================================================
# RESOLUTION
# =============================================================================

def _coerce_filter_value(filter_param: FilterParam, field_type: Any) -> Any:
    if field_type is None:
        return filter_param.value
    if field_type is datetime:
        # Stored timestamps are UTC-aware
        field_type = UtcDatetime
    if filter_param.operator.takes_list:
        adapter = TypeAdapter(list[Optional[field_type]])
    else:
        adapter = TypeAdapter(Optional[field_type])
    return adapter.validate_python(filter_param.value)


def resolve_pagination_params(
    raw: Any,
    spec: QuerySpec,
    max_limit_per_page: int = DEFAULT_MAX_LIMIT_PER_PAGE,
) -> PaginationParams:
    """
    Validate raw pagination input and fill in the entity's defaults.

    Args:
        raw: None, a mapping, or a PaginationParams
        spec: The entity's QuerySpec
        max_limit_per_page: Largest page size accepted

    Returns:
        PaginationParams with sort and limit_per_page set

    Raises:
        ValidationError: keyed by the offending field, e.g. "pagination.page"
            or "filters.0.field"
    """
    try:
        if raw is None:
            params = PaginationParams()
        elif isinstance(raw, PaginationParams):
            params = raw.model_copy(deep=True)
        else:
            params = PaginationParams.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            format_validation_errors(e),
            "Invalid pagination parameters",
        ) from e

    errors: dict[str, str] = {}

    sort = params.sort or spec.default_sort.model_copy()
    if sort.field not in spec.sortable_fields:
        errors["sort.field"] = f"Cannot sort by '{sort.field}'"

    limit = params.pagination.limit_per_page or spec.default_limit_per_page
    if limit > max_limit_per_page:
        errors["pagination.limit_per_page"] = (
            f"Must be at most {max_limit_per_page}"
        )

    filters: list[FilterParam] = []
    for index, filter_param in enumerate(params.filters):
        if filter_param.field not in spec.filterable_fields:
            errors[f"filters.{index}.field"] = (
                f"Cannot filter by '{filter_param.field}'"
            )
            continue
        try:
            value = _coerce_filter_value(
                filter_param, spec.filterable_fields[filter_param.field]
            )
        except PydanticValidationError:
            errors[f"filters.{index}.value"] = (
                f"Invalid value for '{filter_param.field}'"
            )
            continue
        filters.append(filter_param.model_copy(update={"value": value}))

    if errors:
        raise ValidationError(errors, "Invalid pagination parameters")

    return PaginationParams(
        sort=sort,
        filters=filters,
        search=params.search,
        pagination=PageRequest(page=params.pagination.page, limit_per_page=limit),
    )
