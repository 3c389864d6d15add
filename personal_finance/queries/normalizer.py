"""
Result Normalizer

Raw store documents never leave the query layer. Each one is projected
onto the fields its DTO declares and validated; the page envelope is
built here too.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from personal_finance.models.pagination import (
    PageMeta,
    PagedResponse,
    PaginationMeta,
    PaginationParams,
)
from personal_finance.services.storage.interface import Document


DtoT = TypeVar("DtoT", bound=BaseModel)


def next_page_for(page: int, limit_per_page: int, returned: int) -> Optional[int]:
    """
    page + 1 whenever the page came back full.

    This is a heuristic: an exactly full last page still reports a
    next page.
    """
    if returned == limit_per_page:
        return page + 1
    return None


def project(doc: Document, dto_model: type[BaseModel]) -> dict[str, Any]:
    """Keep only the fields the DTO declares."""
    return {
        name: doc[name]
        for name in dto_model.model_fields
        if name in doc
    }


class ResultNormalizer(Generic[DtoT]):

    def __init__(self, dto_model: type[DtoT]):
        self.dto_model = dto_model

    def to_dto(self, doc: Document) -> DtoT:
        return self.dto_model.model_validate(project(doc, self.dto_model))

    def to_dtos(self, docs: list[Document]) -> list[DtoT]:
        return [self.to_dto(doc) for doc in docs]

    def to_page(
        self,
        docs: list[Document],
        params: PaginationParams,
        total_items: Optional[int] = None,
    ) -> PagedResponse[DtoT]:
        data = self.to_dtos(docs)
        page = params.page
        limit = params.limit_per_page

        meta = PageMeta(
            pagination=PaginationMeta(
                page=page,
                limit_per_page=limit,
                total_items=total_items,
                next_page=next_page_for(page, limit, len(data)),
                previous_page=page - 1 if page > 1 else None,
            ),
            sort=params.sort,
            filters=params.filters,
            search=params.search,
        )
        return PagedResponse[self.dto_model](data=data, meta=meta)
