import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import String, asc, cast, desc

from queryspec.core.errors import InvalidRequestError
from queryspec.schemas.pagination import FilterOperator, OrderDirection
from queryspec.services.predicates import Predicate


def _bad_filter_value(column_key: str, kind: str) -> InvalidRequestError:
    return InvalidRequestError(f'Invalid filter value for field "{column_key}" ({kind})')


def _column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except Exception:
        return None


def _coerce_bool(column_key: str, value: str) -> bool:
    text = value.strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    raise _bad_filter_value(column_key, "boolean")


def _coerce_number(column_key: str, value: str, python_type):
    normalized = value.strip().replace(",", ".")
    if not normalized:
        raise _bad_filter_value(column_key, "number")
    try:
        if python_type is int:
            return int(normalized)
        if python_type is float:
            return float(normalized)
        return Decimal(normalized)
    except (ValueError, TypeError, InvalidOperation):
        raise _bad_filter_value(column_key, "number")


def _coerce_date(column_key: str, value: str) -> date:
    text = value.strip()
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_filter_value(column_key, "date")


def _coerce_datetime(column_key: str, value: str) -> datetime:
    text = value.strip()
    try:
        if "T" not in text and " " not in text and len(text) == 10:
            # Date-only literal for timestamp columns -> start of the day.
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise _bad_filter_value(column_key, "datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def coerce_operand(column, value):
    """Convert a raw string to the column's Python type.

    Text columns and columns without a known Python type get the value as is.
    A value that cannot be converted raises :class:`InvalidRequestError`.
    """
    if not isinstance(value, str):
        return value
    python_type = _column_python_type(column)
    if python_type is uuid.UUID:
        try:
            return uuid.UUID(value.strip())
        except ValueError:
            raise _bad_filter_value(column.key, "uuid")
    if python_type is bool:
        return _coerce_bool(column.key, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number(column.key, value, python_type)
    if python_type is date:
        return _coerce_date(column.key, value)
    if python_type is datetime:
        return _coerce_datetime(column.key, value)
    return value


def _like(col, operand):
    if isinstance(col.type, String):
        return col.like(operand)
    return cast(col, String).like(operand)


CRITERION_BUILDERS = {
    FilterOperator.EQUAL: lambda col, operand: col == coerce_operand(col, operand),
    FilterOperator.LIKE: _like,
    FilterOperator.NOT_EQUAL: lambda col, operand: col != coerce_operand(col, operand),
    FilterOperator.GREATER_THAN: lambda col, operand: col > coerce_operand(col, operand),
    FilterOperator.GREATER_THAN_OR_EQUAL: lambda col, operand: col >= coerce_operand(col, operand),
    FilterOperator.IN: lambda col, operand: col.in_([coerce_operand(col, item) for item in operand]),
    FilterOperator.LESS_THAN: lambda col, operand: col < coerce_operand(col, operand),
    FilterOperator.LESS_THAN_OR_EQUAL: lambda col, operand: col <= coerce_operand(col, operand),
    FilterOperator.BETWEEN: lambda col, operand: col.between(
        coerce_operand(col, operand[0]), coerce_operand(col, operand[1])
    ),
}


def predicate_criterion(model, predicate: Predicate):
    col = getattr(model, predicate.field)
    return CRITERION_BUILDERS[predicate.operator](col, predicate.operand)


def order_criterion(model, field: str, direction: OrderDirection):
    col = getattr(model, field)
    return desc(col) if direction == OrderDirection.DESC else asc(col)
