"""Translation of raw request parameters into a :class:`PaginationQuery`.

Top-level keys ``page``, ``limit``, ``fields`` and ``order`` are read directly.
Every other key names a search field and carries an ``{operator: value}``
mapping, e.g. ``{"age": {"gte": "18"}, "status": {"in": "new,open"}}``.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping

from queryspec.core.config import settings
from queryspec.core.errors import InvalidRequestError
from queryspec.schemas.pagination import FilterOperator, OrderDirection, PaginationQuery, SearchClause

RESERVED_KEYS = frozenset({"page", "limit", "fields", "order"})

_NUMBER_RE = re.compile(r"\d+", re.ASCII)


def _is_number(value: Any) -> bool:
    return isinstance(value, str) and _NUMBER_RE.fullmatch(value) is not None


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def _parse_page(params: Mapping[str, Any]) -> int:
    raw = params.get("page")
    if _is_absent(raw):
        return settings.PAGINATION_DEFAULT_PAGE
    if not _is_number(raw):
        raise InvalidRequestError("Sorry, page must be a number")
    page = int(raw)
    if page < 1:
        raise InvalidRequestError("Sorry, but the page must be a number greater than 0.")
    return page


def _parse_limit(params: Mapping[str, Any]) -> int:
    raw = params.get("limit")
    if _is_absent(raw):
        return settings.PAGINATION_DEFAULT_LIMIT
    if not _is_number(raw):
        raise InvalidRequestError("Sorry, limit must be a number")
    limit = int(raw)
    if limit < 1:
        raise InvalidRequestError("Sorry, but the limit must be a number greater than 0.")
    if limit > settings.PAGINATION_MAX_LIMIT:
        raise InvalidRequestError(
            f"Sorry, but the limit must be a number less than {settings.PAGINATION_MAX_LIMIT}."
        )
    return limit


def _parse_fields(params: Mapping[str, Any]) -> List[str]:
    raw = params.get("fields")
    if _is_absent(raw):
        return []
    if not isinstance(raw, str):
        raise InvalidRequestError("Sorry, fields must be a comma-separated list of names")
    return raw.split(",")


def _parse_order(params: Mapping[str, Any]) -> Dict[str, OrderDirection]:
    raw = params.get("order")
    if _is_absent(raw):
        return {}
    if not isinstance(raw, str):
        raise InvalidRequestError("Sorry, but the order must be ASC or DESC.")
    order: Dict[str, OrderDirection] = {}
    for token in raw.split(","):
        field, _, direction = token.partition(":")
        if direction not in (OrderDirection.ASC.value, OrderDirection.DESC.value):
            raise InvalidRequestError("Sorry, but the order must be ASC or DESC.")
        order[field] = OrderDirection(direction)
    return order


def _unknown_operator_error() -> InvalidRequestError:
    allowed = ", ".join(op.value for op in FilterOperator)
    return InvalidRequestError(f"Please, use next operators: {allowed} for search")


def _numbers_only_error(operator: FilterOperator) -> InvalidRequestError:
    return InvalidRequestError(f"Sorry the operator {operator.value} only accepts numbers")


def _single_value(operator: FilterOperator, value: str) -> List[str]:
    return [value]


def _numeric_value(operator: FilterOperator, value: str) -> List[str]:
    if not _is_number(value):
        raise _numbers_only_error(operator)
    return [value]


def _list_values(operator: FilterOperator, value: str) -> List[str]:
    return value.split(",")


def _range_values(operator: FilterOperator, value: str) -> List[str]:
    values = value.split(",")
    if not all(_is_number(item) for item in values):
        raise _numbers_only_error(operator)
    if len(values) != 2:
        raise InvalidRequestError(f"Sorry the operator {operator.value} requires exactly two values")
    return values


CLAUSE_VALUE_PARSERS: Dict[FilterOperator, Callable[[FilterOperator, str], List[str]]] = {
    FilterOperator.EQUAL: _single_value,
    FilterOperator.LIKE: _single_value,
    FilterOperator.NOT_EQUAL: _single_value,
    FilterOperator.GREATER_THAN: _numeric_value,
    FilterOperator.GREATER_THAN_OR_EQUAL: _numeric_value,
    FilterOperator.IN: _list_values,
    FilterOperator.LESS_THAN: _numeric_value,
    FilterOperator.LESS_THAN_OR_EQUAL: _numeric_value,
    FilterOperator.BETWEEN: _range_values,
}


def _parse_clause(raw_operator: Any, value: Any) -> SearchClause:
    try:
        operator = FilterOperator(raw_operator)
    except ValueError:
        raise _unknown_operator_error() from None
    if not isinstance(value, str):
        raise InvalidRequestError(f"Sorry the operator {operator.value} expects a single text value")
    return SearchClause(operator=operator, values=CLAUSE_VALUE_PARSERS[operator](operator, value))


def _parse_search(params: Mapping[str, Any]) -> Dict[str, List[SearchClause]]:
    search: Dict[str, List[SearchClause]] = {}
    for key, entries in params.items():
        if key in RESERVED_KEYS:
            continue
        if not isinstance(entries, Mapping):
            raise _unknown_operator_error()
        clauses: List[SearchClause] = []
        for operator, value in entries.items():
            clauses.append(_parse_clause(operator, value))
        search[key] = clauses
    return search


def parse_pagination_query(params: Mapping[str, Any]) -> PaginationQuery:
    return PaginationQuery(
        page=_parse_page(params),
        limit=_parse_limit(params),
        fields=_parse_fields(params),
        order=_parse_order(params),
        search=_parse_search(params),
    )
