"""Detection of column data types from values, and type-aware comparison."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from olake.enums import DataType
from olake.reformat import _parse_timestamp, reformat_date, reformat_int64
from olake.utils import _go_sprint, max_date

T = TypeVar("T")

_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


def _precision_from_nanos(nanos: int) -> DataType:
    if nanos == 0:
        return DataType.TIMESTAMP
    if nanos % 1_000_000 == 0:
        return DataType.TIMESTAMP_MILLI
    if nanos % 1_000 == 0:
        return DataType.TIMESTAMP_MICRO
    return DataType.TIMESTAMP_NANO


def detect_timestamp_precision(value: datetime) -> DataType:
    """Return the timestamp type matching the fractional precision of value."""
    return _precision_from_nanos(value.microsecond * 1000)


def type_from_value(value: Any) -> DataType:
    """Return the data type that best describes value."""
    if value is None:
        return DataType.NULL
    if isinstance(value, bool):
        return DataType.BOOL
    if isinstance(value, int):
        return DataType.INT32 if _INT32_MIN <= value <= _INT32_MAX else DataType.INT64
    if isinstance(value, float):
        return DataType.FLOAT64
    if isinstance(value, str):
        try:
            _, nanos = _parse_timestamp(value)
        except ValueError:
            return DataType.STRING
        return _precision_from_nanos(nanos)
    if isinstance(value, (list, tuple, bytes, bytearray)):
        return DataType.ARRAY
    if isinstance(value, Mapping):
        return DataType.OBJECT
    if isinstance(value, datetime):
        return detect_timestamp_precision(value)
    return DataType.UNKNOWN


def _convert_for_compare(convert: Callable[[Any], Any], value: Any) -> Any:
    try:
        return convert(value)
    except (TypeError, ValueError) as err:
        raise ValueError(f"failed to reformat[{_go_sprint(value)}] while comparing: {err}") from err


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def maximum_on_data_type(data_type: DataType, a: T, b: T) -> T:
    """Return whichever of a and b is larger when read as data_type.

    Only timestamp and 64-bit integer types can be compared.
    """
    data_type = DataType(data_type)
    if data_type is DataType.TIMESTAMP:
        first = _aware(_convert_for_compare(reformat_date, a))
        second = _aware(_convert_for_compare(reformat_date, b))
        return a if max_date(first, second) == first else b
    if data_type is DataType.INT64:
        first_int = _convert_for_compare(reformat_int64, a)
        second_int = _convert_for_compare(reformat_int64, b)
        return a if first_int > second_int else b
    raise ValueError(f"comparison not available for data types {data_type.value} now")