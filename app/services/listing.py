"""
Shared filter/sort handling for the `/list` endpoints.

Each entity declares which columns a client may name; everything else is
rejected as malformed input before a query is built.
"""
import re
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import Select, or_, select
from sqlalchemy.sql.elements import ColumnElement

from app.integrity.errors import MalformedInput
from app.schemas.common_schemas import ListFilters, SortOrder

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def escape_like(text: str) -> str:
    """Make LIKE wildcards in client text match literally (pair with escape='\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def resolve_column(name: str, columns: Mapping[str, ColumnElement], purpose: str) -> ColumnElement:
    """Look a client-supplied field name up in wire (camelCase) or column form."""
    for candidate in (name, to_snake(name)):
        if candidate in columns:
            return columns[candidate]
    raise MalformedInput(f"Cannot {purpose} by field '{name}'")


def coerce_value(column: ColumnElement, value: Any) -> Any:
    """Cast a JSON scalar to the column's Python type ("3" -> 3 for integer ids)."""
    expr = getattr(column, "expression", column)
    try:
        python_type = expr.type.python_type
    except NotImplementedError:
        return value
    if value is None or isinstance(value, python_type):
        return value
    if python_type is int and isinstance(value, float) and not value.is_integer():
        raise MalformedInput(f"Invalid value for field '{expr.key}'")
    try:
        return python_type(value)
    except (TypeError, ValueError):
        raise MalformedInput(f"Invalid value for field '{expr.key}'")


def build_list_query(
    model,
    filters: Optional[ListFilters],
    *,
    search_columns: Sequence[ColumnElement],
    sort_columns: Mapping[str, ColumnElement],
    field_columns: Optional[Mapping[str, ColumnElement]] = None,
) -> Select:
    stmt = select(model)
    order_by = model.created_at.desc()

    if filters is not None:
        if filters.search:
            like = f"%{escape_like(filters.search)}%"
            stmt = stmt.where(or_(*(col.ilike(like, escape="\\") for col in search_columns)))

        field = filters.field
        if field is not None and field.name and field.value is not None:
            if field_columns is None:
                raise MalformedInput("Field filters are not supported here")
            column = resolve_column(field.name, field_columns, "filter")
            stmt = stmt.where(column == coerce_value(column, field.value))

        sort = filters.sort
        if sort is not None and sort.field and sort.order:
            column = resolve_column(sort.field, sort_columns, "sort")
            order_by = column.asc() if sort.order == SortOrder.ASC else column.desc()

    # id as tie-breaker keeps pages stable when timestamps collide
    return stmt.order_by(order_by, model.id.desc())
