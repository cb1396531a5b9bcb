"""Conversion of raw values into the representation of a column data type."""

from __future__ import annotations

import math
import re
import struct
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from typing import Any

from olake.enums import DataType
from olake.utils import _go_sprint, convert_to_string

_TRUE_STRINGS = frozenset({"1", "t", "T", "true", "TRUE", "True", "YES", "Yes", "yes"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "false", "FALSE", "False", "NO", "No", "no"})

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
# 400 Gregorian years always hold exactly 146097 days.
_CYCLE_SECONDS = 146097 * 86400
_MIN_YEAR = 1
_MAX_YEAR = 9999

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity)|nan",
    re.IGNORECASE,
)
_TIMESTAMP_PATTERN = re.compile(
    r"""
    (?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})
    (?:
        [ T]
        (?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})
        (?:[.,](?P<fraction>[0-9]{1,9}))?
        (?:
            Z
            | \ ?(?P<sign>[+-])(?P<zone_hour>[0-9]{2})(?::?(?P<zone_minute>[0-9]{2}))?
        )?
    )?
    """,
    re.VERBOSE,
)


class NullValueError(ValueError):
    """Raised when a value is reformatted to the null data type."""

    def __init__(self, message: str = "null value") -> None:
        super().__init__(message)


def _wrap(value: int, bits: int) -> int:
    """Wrap an integer into a signed integer of the given width."""
    mask = (1 << bits) - 1
    value &= mask
    return value - (1 << bits) if value >> (bits - 1) else value


def _parse_int(text: str, bits: int, name: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"failed to change string {text} to {name}: invalid syntax")
    number = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= number < limit:
        raise ValueError(f"failed to change string {text} to {name}: value out of range")
    return number


def _is_inf_literal(text: str) -> bool:
    return text.lower().lstrip("+-").startswith("inf")


def _parse_float(text: str, name: str) -> float:
    if not _FLOAT_PATTERN.fullmatch(text):
        raise ValueError(f"failed to change string {text} to {name}: invalid syntax")
    number = float(text)
    if math.isinf(number) and not _is_inf_literal(text):
        raise ValueError(f"failed to change string {text} to {name}: value out of range")
    return number


def _to_float32(value: float) -> float:
    if not math.isfinite(value):
        return value
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _parse_timestamp(value: str) -> tuple[datetime, int]:
    """Parse a timestamp string; return the datetime and its nanoseconds."""
    match = _TIMESTAMP_PATTERN.fullmatch(value)
    if match is None:
        raise ValueError(
            f"failed to parse datetime from available formats: cannot parse {value!r}"
        )
    fraction = match["fraction"]
    nanos = int(fraction.ljust(9, "0")) if fraction else 0
    try:
        tz = timezone.utc
        if match["sign"]:
            offset = timedelta(
                hours=int(match["zone_hour"]), minutes=int(match["zone_minute"] or 0)
            )
            if match["sign"] == "-":
                offset = -offset
            if offset:
                tz = timezone(offset)
        moment = datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"] or 0),
            int(match["minute"] or 0),
            int(match["second"] or 0),
            nanos // 1000,
            tzinfo=tz,
        )
    except ValueError as err:
        raise ValueError(f"failed to parse datetime from available formats: {err}") from err
    return moment, nanos


def parse_string_timestamp(value: str) -> datetime:
    """Parse a timestamp in one of the accepted layouts; zone-less values are UTC."""
    return _parse_timestamp(value)[0]


def _from_unix(seconds: int) -> datetime:
    """Convert Unix seconds to UTC, clamping the year into the representable range."""
    cycles, rest = divmod(seconds, _CYCLE_SECONDS)
    moment = _EPOCH + timedelta(seconds=rest)
    year = min(max(moment.year + 400 * cycles, _MIN_YEAR), _MAX_YEAR)
    if year == moment.year:
        return moment
    try:
        return moment.replace(year=year)
    except ValueError:
        return moment.replace(year=year, month=3, day=1)


def reformat_date(value: Any) -> datetime:
    """Convert a value to a datetime.

    Integers are Unix seconds; None gives the zero time; strings are parsed.
    """
    if value is None:
        return _ZERO_TIME
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, int) and not isinstance(value, bool):
        return _from_unix(value)
    if isinstance(value, str):
        return parse_string_timestamp(value)
    raise TypeError(f"unhandled type[{type(value).__name__}] passed: unable to parse into time")


def reformat_int64(value: Any) -> int:
    """Convert a value to a signed 64-bit integer."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _wrap(value, 64)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"failed to change {_go_sprint(value)} to int64")
        return _wrap(int(value), 64)
    if isinstance(value, str):
        return _parse_int(value, 64, "int64")
    raise TypeError(
        f"failed to change {_go_sprint(value)} (type:{type(value).__name__}) to int64"
    )


def reformat_int32(value: Any) -> int:
    """Convert a value to a signed 32-bit integer."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _wrap(value, 32)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"failed to change {_go_sprint(value)} to int32")
        return _wrap(int(value), 32)
    if isinstance(value, str):
        return _parse_int(value, 32, "int32")
    raise TypeError(
        f"failed to change {_go_sprint(value)} (type:{type(value).__name__}) to int32"
    )


def reformat_float64(value: Any) -> float:
    """Convert a value to a double precision float."""
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        return _parse_float(value, "float64")
    raise TypeError(
        f"failed to change {_go_sprint(value)} (type:{type(value).__name__}) to float64"
    )


def reformat_float32(value: Any) -> float:
    """Convert a value to a float rounded to single precision."""
    if isinstance(value, (bool, int, float)):
        return _to_float32(float(value))
    if isinstance(value, str):
        number = _parse_float(value, "float32")
        rounded = _to_float32(number)
        if math.isinf(rounded) and not math.isinf(number):
            raise ValueError(f"failed to change string {value} to float32: value out of range")
        return rounded
    raise TypeError(
        f"failed to change {_go_sprint(value)} (type:{type(value).__name__}) to float32"
    )


def _reformat_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
    elif isinstance(value, int) and value in (0, 1):
        return True
    raise ValueError(f"found to be boolean, but value is not boolean : {_go_sprint(value)}")


def _reformat_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return convert_to_string(value)
    return _go_sprint(value)


def reformat_value(data_type: DataType, value: Any) -> Any:
    """Convert value to the representation of data_type.

    Raises NullValueError for the null type; types without a conversion
    return the value unchanged.
    """
    data_type = DataType(data_type)
    if data_type is DataType.NULL:
        raise NullValueError()
    if data_type is DataType.BOOL:
        return _reformat_bool(value)
    if data_type is DataType.INT64:
        return reformat_int64(value)
    if data_type is DataType.INT32:
        return reformat_int32(value)
    if data_type is DataType.TIMESTAMP:
        return reformat_date(value)
    if data_type is DataType.STRING:
        return _reformat_string(value)
    if data_type is DataType.FLOAT64:
        return reformat_float64(value)
    if data_type is DataType.FLOAT32:
        return reformat_float32(value)
    if data_type is DataType.ARRAY:
        return value if isinstance(value, list) else [value]
    return value


def reformat_value_on_data_types(data_types: Iterable[DataType], value: Any) -> Any:
    """Convert value to the first data type that is not null."""
    first = next((DataType(t) for t in data_types if t != DataType.NULL), DataType.NULL)
    return reformat_value(first, value)


def _convert_element(element: Any) -> Any:
    if isinstance(element, dict):
        return reformat_byte_arrays_to_string(element)
    if isinstance(element, (bytes, bytearray)):
        return convert_to_string(element)
    return element


def reformat_byte_arrays_to_string(data: dict[str, Any]) -> dict[str, Any]:
    """Replace byte strings with text throughout nested dicts and lists, in place."""
    for key, value in data.items():
        if isinstance(value, dict):
            data[key] = reformat_byte_arrays_to_string(value)
        elif isinstance(value, (bytes, bytearray)):
            data[key] = convert_to_string(value)
        elif isinstance(value, list):
            data[key] = [_convert_element(element) for element in value]
    return data