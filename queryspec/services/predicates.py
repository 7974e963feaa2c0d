"""Store-neutral predicates built from parsed search clauses."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional, Sequence

from queryspec.schemas.pagination import FilterOperator, SearchClause

_LOG = logging.getLogger("queryspec.repository")


@dataclass(frozen=True)
class Predicate:
    field: str
    operator: FilterOperator
    # Scalar for comparison operators, tuple of values for IN, (low, high) for BETWEEN.
    operand: Any


def _first(field: str, operator: FilterOperator, values: Sequence[str]) -> Optional[Predicate]:
    return Predicate(field, operator, values[0])


def _contains(field: str, operator: FilterOperator, values: Sequence[str]) -> Optional[Predicate]:
    return Predicate(field, operator, f"%{values[0]}%")


def _one_of(field: str, operator: FilterOperator, values: Sequence[str]) -> Optional[Predicate]:
    return Predicate(field, operator, tuple(values))


def _between(field: str, operator: FilterOperator, values: Sequence[str]) -> Optional[Predicate]:
    if len(values) != 2:
        return None
    return Predicate(field, operator, (values[0], values[1]))


PREDICATE_BUILDERS: Dict[FilterOperator, Callable[[str, FilterOperator, Sequence[str]], Optional[Predicate]]] = {
    FilterOperator.EQUAL: _first,
    FilterOperator.LIKE: _contains,
    FilterOperator.NOT_EQUAL: _first,
    FilterOperator.GREATER_THAN: _first,
    FilterOperator.GREATER_THAN_OR_EQUAL: _first,
    FilterOperator.IN: _one_of,
    FilterOperator.LESS_THAN: _first,
    FilterOperator.LESS_THAN_OR_EQUAL: _first,
    FilterOperator.BETWEEN: _between,
}


def clause_to_predicate(field: str, clause: SearchClause) -> Optional[Predicate]:
    builder = PREDICATE_BUILDERS.get(clause.operator)
    if builder is None or not clause.values:
        return None
    return builder(field, clause.operator, clause.values)


def build_predicates(search: Mapping[str, Sequence[SearchClause]], columns: Collection[str]) -> List[Predicate]:
    """Flatten ``search`` into predicates that are all meant to hold at once.

    Fields missing from ``columns`` and clauses that do not form a valid
    predicate are skipped without raising.
    """
    predicates: List[Predicate] = []
    for field, clauses in search.items():
        if field not in columns:
            _LOG.debug("search field dropped field=%s", field)
            continue
        for clause in clauses:
            predicate = clause_to_predicate(field, clause)
            if predicate is None:
                _LOG.debug("search clause dropped field=%s operator=%s", field, clause.operator.value)
                continue
            predicates.append(predicate)
    return predicates
