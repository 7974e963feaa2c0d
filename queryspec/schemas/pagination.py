from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class FilterOperator(str, Enum):
    EQUAL = "eq"
    LIKE = "like"
    NOT_EQUAL = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    IN = "in"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    BETWEEN = "btw"


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class SearchClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    operator: FilterOperator
    values: List[str]


class PaginationFilter(BaseModel):
    """Repository input. Every key is optional; ``where``, ``relations`` and
    ``with_deleted`` are handed to the record store unchanged."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    page: Optional[int] = None
    limit: Optional[int] = None
    fields: Optional[List[str]] = None
    order: Optional[Dict[str, OrderDirection]] = None
    search: Optional[Dict[str, List[SearchClause]]] = None
    where: Optional[List[Any]] = None
    relations: List[str] = []
    with_deleted: bool = False


class PaginationQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    fields: List[str] = []
    order: Dict[str, OrderDirection] = {}
    search: Dict[str, List[SearchClause]] = {}

    def to_filter(self, **options: Any) -> PaginationFilter:
        return PaginationFilter(
            page=self.page,
            limit=self.limit,
            fields=list(self.fields),
            order=dict(self.order),
            search={key: list(clauses) for key, clauses in self.search.items()},
            **options,
        )


class PageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total_items: int) -> PageMetadata:
        total_pages = math.ceil(total_items / limit)
        return cls(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


@dataclass(frozen=True)
class Pagination(Generic[T]):
    data: List[T]
    metadata: PageMetadata
