"""Column type inference and value coercion for raw spreadsheet rows.

Types are inferred per column, never per cell: every non-empty value of a column
has to pass the same test for the column to get that type. The tests are tried
from strictest to loosest (number, boolean, date) and a column that fails all of
them is a string column.

Example:

    >>> infer_field_type(['true', 'false', 'TRUE'])
    <FieldType.BOOLEAN: 'boolean'>
    >>> infer_field_type(['true', 'maybe'])
    <FieldType.STRING: 'string'>
"""
from __future__ import annotations

import datetime
import math
import numbers
import re
from typing import Any, Iterable, Sequence

import pandas as pd

from sheetmapper.enums import FieldType
from sheetmapper.typevars import RawValue

_BOOLEAN_STRINGS = ('true', 'false')
_HAS_YEAR = re.compile(r'\d{4}')
# Explicit formats only; parsed values must not depend on the current date.
DATE_FORMATS = (
    'ISO8601',
    '%m/%d/%Y',
    '%m/%d/%Y %H:%M:%S',
    '%d.%m.%Y',
    '%Y/%m/%d',
    '%d %B %Y',
    '%B %d, %Y',
    '%d %b %Y',
    '%b %d, %Y',
)
_EPOCH = pd.Timestamp(0)


def is_empty(value: RawValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    if isinstance(value, (bool, datetime.datetime, datetime.date)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_number(value: RawValue) -> float | None:
    """Finite float for numeric values and numeric strings, None otherwise. Booleans are not numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text or '_' in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def is_boolean_like(value: RawValue) -> bool:
    if isinstance(value, bool):
        return True
    return isinstance(value, str) and value.strip().lower() in _BOOLEAN_STRINGS


def to_datetime(value: RawValue) -> datetime.datetime | None:
    """
    Parse a calendar date that states its year explicitly.

    Strings are tried against DATE_FORMATS in order, so the result never depends
    on the day the data is converted. Time-only values ('12:30') and fractions
    ('1/2') are not dates.
    """
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not _HAS_YEAR.search(value):
        return None
    text = value.strip()
    for date_format in DATE_FORMATS:
        try:
            timestamp = pd.to_datetime(text, format=date_format)
        except (ValueError, TypeError, OverflowError):
            continue
        if not pd.isna(timestamp):
            return timestamp.to_pydatetime()
    return None


def _is_epoch(value: datetime.datetime) -> bool:
    timestamp = pd.Timestamp(value)
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_convert('UTC').tz_localize(None)
    return timestamp == _EPOCH


def infer_field_type(values: Iterable[RawValue]) -> FieldType:
    non_empty = [v for v in values if not is_empty(v)]
    if not non_empty:
        return FieldType.STRING

    if all(to_number(v) is not None for v in non_empty):
        return FieldType.NUMBER

    if all(is_boolean_like(v) for v in non_empty):
        return FieldType.BOOLEAN

    dates = [to_datetime(v) for v in non_empty]
    if all(d is not None for d in dates) and not all(_is_epoch(d) for d in dates):
        return FieldType.DATE

    return FieldType.STRING


def infer_field_types(rows: Sequence[dict[str, RawValue]]) -> dict[str, FieldType]:
    """
    Infer one FieldType per column.

    The column set is taken from the first row; a column missing from a later row
    counts as an empty value there.

    Args:
        rows: Raw rows in spreadsheet order.

    Returns:
        Mapping column name -> FieldType, in column order. Empty for no rows.
    """
    if not rows:
        return {}
    return {
        column: infer_field_type(row.get(column) for row in rows)
        for column in rows[0].keys()
    }


def coerce_value(value: RawValue, field_type: FieldType | None) -> Any:
    if is_empty(value):
        return None
    if field_type == FieldType.NUMBER:
        return to_number(value)
    if field_type == FieldType.BOOLEAN:
        return str(value).strip().lower() == 'true'
    if field_type == FieldType.DATE:
        return to_datetime(value)
    return value


def coerce_row(row: dict[str, RawValue], field_types: dict[str, FieldType]) -> dict[str, Any]:
    """Return a new row with every value coerced to its column type; the input row is left untouched."""
    return {key: coerce_value(value, field_types.get(key)) for key, value in row.items()}
