from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.inspection import inspect as sa_inspect


def _serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def record_to_dict(row: Any, fields: Sequence[str] = ()) -> dict[str, Any]:
    """Serialize the loaded columns of an ORM row.

    With ``fields``, only the requested columns are emitted; the primary key is
    always loaded by the ORM but left out unless it was asked for. When none of
    ``fields`` names a column, every loaded column is emitted.
    """
    state = sa_inspect(row)
    unloaded = state.unloaded
    keys = [attr.key for attr in state.mapper.column_attrs if attr.key not in unloaded]
    wanted = set(fields)
    requested = [key for key in keys if key in wanted]
    return {key: _serialize_value(getattr(row, key)) for key in (requested or keys)}
