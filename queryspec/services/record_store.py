from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from sqlalchemy import delete, update
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query, Session, load_only, selectinload

from queryspec.models.common import utcnow
from queryspec.schemas.pagination import OrderDirection
from queryspec.services.criteria import coerce_operand, order_criterion, predicate_criterion
from queryspec.services.predicates import Predicate

SOFT_DELETE_COLUMN = "deleted_at"


@dataclass
class FindOptions:
    select: List[str] = field(default_factory=list)
    # Predicate items are rendered by the store; anything else is used as a raw SQLAlchemy criterion.
    where: List[Any] = field(default_factory=list)
    order: Dict[str, OrderDirection] = field(default_factory=dict)
    take: Optional[int] = None
    skip: Optional[int] = None
    relations: List[str] = field(default_factory=list)
    with_deleted: bool = False


class RecordStore(Protocol):
    def column_names(self) -> Set[str]:
        ...

    def find(self, options: FindOptions) -> List[Any]:
        ...

    def find_and_count(self, options: FindOptions) -> Tuple[List[Any], int]:
        ...

    def find_one(self, options: FindOptions) -> Any | None:
        ...

    def create(self, data: Any) -> Any:
        ...

    def save(self, entity: Any) -> Any:
        ...

    def delete(self, id: Any) -> None:
        ...

    def soft_delete(self, id: Any) -> None:
        ...

    def restore(self, id: Any) -> None:
        ...


class SqlAlchemyRecordStore:
    """RecordStore over one mapped model and the session it was handed."""

    def __init__(self, model: type, db: Session):
        self.model = model
        self.db = db

    def column_names(self) -> Set[str]:
        return {attr.key for attr in sa_inspect(self.model).column_attrs}

    def _pk_column(self):
        return sa_inspect(self.model).primary_key[0]

    def _soft_delete_column(self):
        if SOFT_DELETE_COLUMN not in self.column_names():
            return None
        return getattr(self.model, SOFT_DELETE_COLUMN)

    def _filtered(self, options: FindOptions) -> Query:
        q = self.db.query(self.model)
        deleted_at = self._soft_delete_column()
        if deleted_at is not None and not options.with_deleted:
            q = q.filter(deleted_at.is_(None))
        for criterion in options.where:
            if isinstance(criterion, Predicate):
                criterion = predicate_criterion(self.model, criterion)
            q = q.filter(criterion)
        return q

    def _shaped(self, q: Query, options: FindOptions) -> Query:
        if options.select:
            q = q.options(load_only(*[getattr(self.model, name) for name in options.select]))
        for name in options.relations:
            q = q.options(selectinload(getattr(self.model, name)))
        columns = self.column_names()
        for name, direction in options.order.items():
            if name not in columns:
                continue
            q = q.order_by(order_criterion(self.model, name, direction))
        if options.skip:
            q = q.offset(options.skip)
        if options.take is not None:
            q = q.limit(options.take)
        return q

    def find(self, options: FindOptions) -> List[Any]:
        return self._shaped(self._filtered(options), options).all()

    def find_and_count(self, options: FindOptions) -> Tuple[List[Any], int]:
        q = self._filtered(options)
        total = q.count()
        rows = self._shaped(q, options).all()
        return rows, total

    def find_one(self, options: FindOptions) -> Any | None:
        return self._shaped(self._filtered(options), options).first()

    def create(self, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            return [self.model(**item) for item in data]
        return self.model(**data)

    def save(self, entity: Any) -> Any:
        if isinstance(entity, (list, tuple)):
            self.db.add_all(entity)
        else:
            self.db.add(entity)
        self.db.flush()
        return entity

    def _pk_clause(self, id: Any):
        pk = self._pk_column()
        return pk == coerce_operand(getattr(self.model, pk.key), id)

    def delete(self, id: Any) -> None:
        self.db.execute(delete(self.model).where(self._pk_clause(id)))

    def soft_delete(self, id: Any) -> None:
        deleted_at = self._soft_delete_column()
        if deleted_at is None:
            raise ValueError(f"{self.model.__name__} has no {SOFT_DELETE_COLUMN} column")
        self.db.execute(
            update(self.model).where(self._pk_clause(id), deleted_at.is_(None)).values(deleted_at=utcnow())
        )

    def restore(self, id: Any) -> None:
        deleted_at = self._soft_delete_column()
        if deleted_at is None:
            raise ValueError(f"{self.model.__name__} has no {SOFT_DELETE_COLUMN} column")
        self.db.execute(update(self.model).where(self._pk_clause(id)).values(deleted_at=None))
