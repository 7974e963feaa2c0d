from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterable, List, Optional, Type, TypeVar, Union

from sqlalchemy.orm import Session

from queryspec.core.config import settings
from queryspec.schemas.pagination import PageMetadata, Pagination, PaginationFilter, PaginationQuery
from queryspec.services.predicates import build_predicates
from queryspec.services.record_store import FindOptions, RecordStore, SqlAlchemyRecordStore

T = TypeVar("T")

FilterInput = Union[PaginationFilter, PaginationQuery, None]

_LOG = logging.getLogger("queryspec.repository")


def _as_filter(value: FilterInput) -> PaginationFilter:
    if value is None:
        return PaginationFilter()
    if isinstance(value, PaginationQuery):
        return value.to_filter()
    return value


class FilteredRepository(Generic[T]):
    """Query and CRUD access to one model.

    Every call takes the session explicitly, so the same repository instance can
    serve plain request sessions and :class:`UnitOfWork` transactions alike.
    """

    def __init__(self, model: Type[T], store_class: Callable[[Type[T], Session], RecordStore] = SqlAlchemyRecordStore):
        self.model = model
        self.store_class = store_class

    def store(self, db: Session) -> RecordStore:
        return self.store_class(self.model, db)

    def find_all(self, db: Session, query: FilterInput = None) -> List[T]:
        store = self.store(db)
        return store.find(self.build_find_options(store, _as_filter(query)))

    def paginate(self, db: Session, query: FilterInput = None) -> Pagination[T]:
        current = _as_filter(query)
        page = current.page or settings.PAGINATION_DEFAULT_PAGE
        limit = current.limit or settings.PAGINATION_DEFAULT_LIMIT
        store = self.store(db)
        options = self.build_find_options(store, current.model_copy(update={"page": page, "limit": limit}))
        data, total_items = store.find_and_count(options)
        return Pagination(data=list(data), metadata=PageMetadata.build(page, limit, total_items))

    def find_one(self, db: Session, query: FilterInput = None) -> Optional[T]:
        store = self.store(db)
        return store.find_one(self.build_find_options(store, _as_filter(query)))

    def create(self, db: Session, data: dict[str, Any]) -> T:
        store = self.store(db)
        return store.save(store.create(data))

    def bulk_create(self, db: Session, items: Iterable[dict[str, Any]]) -> List[T]:
        store = self.store(db)
        return store.save(store.create(list(items)))

    def save(self, db: Session, entity: T) -> T:
        return self.store(db).save(entity)

    def delete(self, db: Session, id: Any) -> None:
        self.store(db).delete(id)

    def soft_delete(self, db: Session, id: Any) -> None:
        self.store(db).soft_delete(id)

    def restore(self, db: Session, id: Any) -> None:
        self.store(db).restore(id)

    def build_find_options(self, store: RecordStore, current: PaginationFilter) -> FindOptions:
        columns = store.column_names()
        options = FindOptions(
            where=list(current.where or []),
            order=dict(current.order or {}),
            relations=list(current.relations),
            with_deleted=current.with_deleted,
        )
        if current.fields:
            selected = [name for name in dict.fromkeys(current.fields) if name in columns]
            if len(selected) != len(set(current.fields)):
                _LOG.debug(
                    "unknown fields dropped model=%s fields=%s",
                    getattr(self.model, "__name__", self.model),
                    sorted(set(current.fields) - columns),
                )
            options.select = selected
        if current.limit:
            options.take = current.limit
        if current.page and current.limit:
            options.skip = (current.page - 1) * current.limit
        if current.search is not None:
            options.where = build_predicates(current.search, columns)
        return options
