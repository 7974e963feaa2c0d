from __future__ import annotations

from typing import Any, Callable, Sequence

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from queryspec.api.params import get_pagination_query
from queryspec.api.serializers import record_to_dict
from queryspec.db.session import get_db
from queryspec.schemas.pagination import PaginationQuery
from queryspec.services.filtered_repository import FilteredRepository


def build_listing_router(
    path: str,
    repository: FilteredRepository,
    serialize: Callable[[Any, Sequence[str]], dict[str, Any]] = record_to_dict,
    get_session: Callable[..., Any] = get_db,
) -> APIRouter:
    router = APIRouter()

    @router.get(path)
    def list_records(query: PaginationQuery = Depends(get_pagination_query), db: Session = Depends(get_session)):
        page = repository.paginate(db, query)
        return {"data": [serialize(row, query.fields) for row in page.data], "metadata": page.metadata.model_dump()}

    return router
