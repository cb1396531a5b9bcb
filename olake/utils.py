"""General helpers: JSON conversion, hashing, identifiers and comparisons."""

from __future__ import annotations

import base64
import hashlib
import json
import math
import os
import secrets
import threading
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timezone
from typing import Any, TypeVar

T = TypeVar("T")

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENTROPY_BITS = 80
_MAX_TIMESTAMP_MS = (1 << 48) - 1
_MAX_INCREMENT = (1 << 32) - 1

_ulid_lock = threading.Lock()
_last_ulid_ms = -1
_last_entropy = 0


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        exp = int(exponent)
        sign = "+" if exp >= 0 else "-"
        return f"{mantissa}e{sign}{abs(exp):02d}"
    return text


def _go_sprint(value: Any) -> str:
    """Render a value the way the default textual formatting of the sync engine does."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray)):
        return "[" + " ".join(str(b) for b in value) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_go_sprint(item) for item in value) + "]"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: _go_sprint(kv[0]))
        return "map[" + " ".join(f"{_go_sprint(k)}:{_go_sprint(v)}" for k, v in items) + "]"
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def absolute(value: float) -> float:
    """Return the absolute value of a number."""
    return -value if value < 0 else value


def exist_in_array(values: Iterable[T], value: T) -> bool:
    """Return True if value is one of values."""
    return array_contains(list(values), lambda elem: elem == value) is not None


def array_contains(values: Sequence[T], match: Callable[[T], bool]) -> int | None:
    """Return the index of the first element that matches, or None."""
    return next((idx for idx, elem in enumerate(values) if match(elem)), None)


def ternary(cond: bool, a: Any, b: Any) -> Any:
    """Return a if cond holds, else b."""
    return a if cond else b


def to_json_compatible(value: Any) -> Any:
    """Recursively turn mappings with non-string keys into string-keyed dicts."""
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(item) for item in value]
    if isinstance(value, dict):
        return {
            (key if isinstance(key, str) else _go_sprint(key)): to_json_compatible(item)
            for key, item in value.items()
        }
    return value


def unmarshal(source: Any) -> Any:
    """Pass a value through a JSON encode/decode cycle and return the decoded data."""
    try:
        encoded = json.dumps(to_json_compatible(source), default=_json_default, allow_nan=False)
    except (TypeError, ValueError) as err:
        raise ValueError(f"error marshaling object: {err}") from err
    return json.loads(encoded)


def check_if_files_exist(*files: str | os.PathLike[str]) -> None:
    """Raise if any of the files is missing or cannot be read."""
    for file in files:
        if not os.path.exists(file):
            raise FileNotFoundError(f"{os.fspath(file)} does not exist")
        try:
            with open(file, "rb") as handle:
                handle.read()
        except OSError as err:
            raise OSError(f"failed to read {os.fspath(file)}: {err}") from err


def unmarshal_file(path: str | os.PathLike[str]) -> Any:
    """Read a JSON file and return its decoded content."""
    check_if_files_exist(path)
    with open(path, encoding="utf-8") as handle:
        text = handle.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError as err:
        raise ValueError(f"failed to unmarshal file[{os.fspath(path)}]: {err}") from err


def is_of_type(obj: Any, deciding_key: str) -> bool:
    """Return True if obj, seen as a JSON object, carries deciding_key."""
    data = unmarshal(obj)
    if not isinstance(data, dict):
        raise ValueError("error unmarshalling from object: value is not a JSON object")
    return deciding_key in data


def stream_identifier(name: str, namespace: str) -> str:
    """Return 'namespace.name', or just name when there is no namespace."""
    return f"{namespace}.{name}" if namespace else name


def is_subset(values: Iterable[T], subset: Iterable[T]) -> bool:
    """Return True if every item of subset appears in values."""
    present = set(values)
    return all(item in present for item in subset)


def max_date(a: datetime, b: datetime) -> datetime:
    """Return the later of two datetimes, preferring b when equal."""
    return a if a > b else b


def _encode_ulid(timestamp_ms: int, entropy: int) -> str:
    value = (timestamp_ms << _ENTROPY_BITS) | entropy
    return "".join(_CROCKFORD[(value >> (5 * shift)) & 31] for shift in reversed(range(26)))


def _gen_ulid(moment: datetime) -> str:
    global _last_ulid_ms, _last_entropy
    timestamp_ms = int(moment.timestamp() * 1000)
    if not 0 <= timestamp_ms <= _MAX_TIMESTAMP_MS:
        raise ValueError("failed to generate ulid: timestamp out of range")
    with _ulid_lock:
        if timestamp_ms == _last_ulid_ms:
            entropy = _last_entropy + 1 + secrets.randbelow(_MAX_INCREMENT - 1)
            if entropy >= 1 << _ENTROPY_BITS:
                raise OverflowError("failed to generate ulid: monotonic entropy overflow")
        else:
            entropy = secrets.randbits(_ENTROPY_BITS)
        _last_ulid_ms = timestamp_ms
        _last_entropy = entropy
        return _encode_ulid(timestamp_ms, entropy)


def ulid() -> str:
    """Return a new monotonic ULID for the current time."""
    return _gen_ulid(datetime.now(timezone.utc))


def timestamped_file_name(extension: str) -> str:
    """Return a file name made of the current UTC time, a ULID and the extension."""
    now = datetime.now(timezone.utc)
    return (
        f"{now.year}-{now.month}-{now.day}_{now.hour}-{now.minute}-{now.second}"
        f"_{_gen_ulid(now)}.{extension}"
    )


def is_json(text: str) -> bool:
    """Return True if text is a valid JSON document."""
    try:
        json.loads(text)
    except (ValueError, TypeError):
        return False
    return True


def get_keys_hash(record: dict[str, Any], *keys: str) -> str:
    """Return the md5 of the values under the sorted keys, or of the whole record."""
    if not keys:
        return get_hash(record)
    joined = "".join(f"{_go_sprint(record.get(key))}|" for key in sorted(keys))
    return hashlib.md5(joined.encode("utf-8")).hexdigest()  # noqa: S324


def get_hash(record: dict[str, Any]) -> str:
    """Return the md5 of all the record's values, taken in key order."""
    if not record:
        return hashlib.md5(b"").hexdigest()  # noqa: S324
    return get_keys_hash(record, *record)


def add_constant(value: Any, increment: int) -> int | float:
    """Add an integer constant to a numeric value, keeping its kind."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(
            f"failed to add contant values to interface, unsupported type {type(value).__name__}"
        )
    return value + (float(increment) if isinstance(value, float) else increment)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_values(a: Any, b: Any) -> int:
    """Return -1, 0 or 1 as a is less than, equal to or greater than b."""
    if _is_number(a):
        if b is not None and not _is_number(b):
            raise TypeError(f"cannot compare number with {type(b).__name__}")
        af, bf = float(a), float(b) if b is not None else 0.0
        return -1 if af < bf else 1 if af > bf else 0
    if isinstance(a, str):
        if b is None:
            return 1
        if not isinstance(b, str):
            raise TypeError(f"cannot compare string with {type(b).__name__}")
        return -1 if a < b else 1 if a > b else 0
    return 0


def convert_to_string(value: Any) -> str:
    """Return a textual form of value; bytes are decoded as UTF-8."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return _go_sprint(value)


def is_valid_subcommand(available: Iterable[str], sub: str) -> bool:
    """Return True if sub names one of the available commands."""
    return sub in set(available)