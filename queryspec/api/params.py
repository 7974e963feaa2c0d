from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Tuple

from fastapi import Request

from queryspec.schemas.pagination import PaginationQuery
from queryspec.services.query_parser import parse_pagination_query

_NESTED_KEY_RE = re.compile(r"([^\[\]]+)\[([^\[\]]+)\]")
_LOG = logging.getLogger("queryspec.http")


def nest_query_params(items: Iterable[Tuple[str, str]]) -> dict[str, Any]:
    """Group ``field[op]=value`` pairs into ``{field: {op: value}}``.

    Plain keys stay flat. When a key repeats, the last value wins.
    """
    params: dict[str, Any] = {}
    for key, value in items:
        match = _NESTED_KEY_RE.fullmatch(key)
        if match is None:
            params[key] = value
            continue
        field, operator = match.groups()
        nested = params.get(field)
        if not isinstance(nested, dict):
            nested = {}
            params[field] = nested
        nested[operator] = value
    return params


def get_pagination_query(request: Request) -> PaginationQuery:
    query = parse_pagination_query(nest_query_params(request.query_params.multi_items()))
    _LOG.debug(
        "parsed listing query path=%s page=%s limit=%s fields=%s search=%s",
        request.url.path,
        query.page,
        query.limit,
        ",".join(query.fields) or "-",
        ",".join(sorted(query.search)) or "-",
    )
    return query
