"""A set keyed by a string hash of each element, for values Python cannot hash."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable, Iterator
from dataclasses import asdict, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from olake.utils import _go_sprint

T = TypeVar("T")


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    return type(value).__name__


def _canonical(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if is_dataclass(value) and not isinstance(value, type):
        return [
            type(value).__name__,
            {f.name: _canonical(getattr(value, f.name)) for f in fields(value)},
        ]
    if isinstance(value, dict):
        items = [[_canonical(k), _canonical(v)] for k, v in value.items()]
        return ["dict", sorted(items, key=repr)]
    if isinstance(value, (list, tuple)):
        return [type(value).__name__, [_canonical(item) for item in value]]
    if isinstance(value, (set, frozenset)):
        return ["set", sorted((_canonical(item) for item in value), key=repr)]
    if value is None or isinstance(value, (str, int, float, bool)):
        return [_kind(value), value]
    return [_kind(value), repr(value)]


def _structural_key(element: Any) -> str:
    return json.dumps(_canonical(element), sort_keys=True, default=repr)


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


class HashSet(Generic[T]):
    """An insertion-ordered set whose membership is decided by a string key.

    The key of an element is, in order of preference: its ``hash_key()``,
    its ``id()``, the set's hasher, or a structural key of its value.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, *initial: T, hasher: Callable[[T], str] | None = None) -> None:
        self._storage: dict[str, T] = {}
        self._hasher = hasher
        self.insert(*initial)

    def with_hasher(self, hasher: Callable[[T], str]) -> HashSet[T]:
        """Use hasher for elements that provide no key of their own."""
        self._hasher = hasher
        return self

    def hash(self, element: T) -> str:
        """Return the key under which element is stored."""
        key_method = getattr(element, "hash_key", None)
        if callable(key_method):
            return str(key_method())
        ident = getattr(element, "id", None)
        if callable(ident):
            return str(ident())
        if self._hasher is not None:
            return self._hasher(element)
        return _structural_key(element)

    def insert(self, *elements: T) -> None:
        """Add elements that are not present yet."""
        for element in elements:
            self._storage.setdefault(self.hash(element), element)

    def exists(self, element: T) -> bool:
        """Return True if an element with the same key is present."""
        return self.hash(element) in self._storage

    def remove(self, element: T) -> None:
        """Remove the element with the same key, if present."""
        self._storage.pop(self.hash(element), None)

    def _empty(self) -> HashSet[T]:
        return HashSet(hasher=self._hasher)

    def difference(self, other: HashSet[T]) -> HashSet[T]:
        """Return the elements of this set that are not in other."""
        result = self._empty()
        result._storage = {k: v for k, v in self._storage.items() if k not in other._storage}
        return result

    def intersection(self, other: HashSet[T]) -> HashSet[T]:
        """Return the elements present in both sets, as stored in other."""
        result = self._empty()
        result._storage = {k: other._storage[k] for k in self._storage if k in other._storage}
        return result

    def union(self, other: HashSet[T]) -> HashSet[T]:
        """Return the elements present in either set."""
        result = self._empty()
        result._storage = dict(self._storage)
        for key, value in other._storage.items():
            result._storage.setdefault(key, value)
        return result

    def subset_of(self, other: HashSet[T]) -> bool:
        """Return True if every element of this set is in other."""
        if len(self) > len(other):
            return False
        return all(key in other._storage for key in self._storage)

    def proper_subset_of(self, other: HashSet[T]) -> bool:
        """Return True if this set is a subset of other and smaller than it."""
        return self.subset_of(other) and len(self) < len(other)

    def to_list(self) -> list[T]:
        """Return the elements in insertion order."""
        return list(self._storage.values())

    def to_json(self) -> str:
        """Encode the set as a JSON array."""
        return json.dumps(self.to_list(), default=_json_default)

    @classmethod
    def from_json(cls, data: str | bytes | list[Any] | None) -> HashSet[Any]:
        """Build a set from a JSON array (text or already decoded)."""
        items = json.loads(data) if isinstance(data, (str, bytes, bytearray)) else data
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise ValueError(f"cannot decode set from JSON value of type {type(items).__name__}")
        return cls(*items)

    def __len__(self) -> int:
        return len(self._storage)

    def __iter__(self) -> Iterator[T]:
        return iter(self.to_list())

    def __contains__(self, element: object) -> bool:
        return self.exists(element)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashSet):
            return NotImplemented
        return self._storage.keys() == other._storage.keys()

    def __str__(self) -> str:
        return "[" + ", ".join(_go_sprint(value) for value in self._storage.values()) + "]"

    def __repr__(self) -> str:
        return f"HashSet({self.to_list()!r})"