"""Flattening of records: nested values become JSON text and keys are normalised."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

_SCALARS = (bool, int, float, str)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _to_json(key: str, value: Any) -> str:
    try:
        return json.dumps(
            value, default=_json_default, sort_keys=True, separators=(",", ":"), allow_nan=False
        )
    except (TypeError, ValueError) as err:
        raise ValueError(f"error marshaling value with key[{key}]: {err}") from err


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, bytes, bytearray))


def is_letter_or_number(symbol: str | int) -> bool:
    """Return True for an ASCII letter or digit (a character or code point)."""
    char = chr(symbol) if isinstance(symbol, int) else symbol
    return len(char) == 1 and char.isascii() and char.isalnum()


def reformat_key(key: str) -> str:
    """Lower-case a key and replace every non-alphanumeric character with '_'."""
    return "".join(char if is_letter_or_number(char) else "_" for char in key.lower())


@dataclass
class Flattener:
    """Flattens a record for typed destinations; unknown values become text."""

    omit_nil_values: bool = True

    def flatten(self, record: dict[str, Any]) -> dict[str, Any]:
        """Return a new flat record with normalised keys."""
        destination: dict[str, Any] = {}
        for key, value in record.items():
            name = reformat_key(key)
            if _is_sequence(value) or isinstance(value, dict):
                destination[name] = _to_json(name, value)
            elif isinstance(value, _SCALARS):
                destination[name] = value
            elif value is None:
                if not self.omit_nil_values:
                    destination[name] = "<nil>"
            elif isinstance(value, datetime):
                destination[name] = value
            else:
                destination[name] = str(value)
        return destination


@dataclass
class PassthroughFlattener:
    """Flattens only nested values; everything else is kept as it is."""

    omit_nil_values: bool = True

    def flatten(self, record: dict[str, Any]) -> dict[str, Any]:
        """Return a new flat record with normalised keys."""
        destination: dict[str, Any] = {}
        for key, value in record.items():
            name = reformat_key(key)
            if _is_sequence(value) or isinstance(value, dict):
                destination[name] = _to_json(name, value)
            elif value is None and self.omit_nil_values:
                continue
            else:
                destination[name] = value
        return destination