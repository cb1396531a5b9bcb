"""Column type schema of a stream."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from olake.enums import DataType
from olake.sets import HashSet


@dataclass
class Property:
    """The set of data types seen for one column."""

    type: HashSet[DataType] = field(default_factory=HashSet)

    def data_type(self) -> DataType:
        """Return the first type that is not null, or null if there is none."""
        return next(
            (DataType(t) for t in self.type.to_list() if t != DataType.NULL), DataType.NULL
        )

    def nullable(self) -> bool:
        """Return True if null is among the types."""
        return self.type.exists(DataType.NULL)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the property."""
        return {"type": [DataType(t).value for t in self.type.to_list()]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Property:
        """Build a property from its JSON form."""
        return cls(HashSet(*(DataType(t) for t in data.get("type") or [])))


class TypeSchema:
    """Thread-safe mapping of column names to properties."""

    def __init__(self, properties: Mapping[str, Property] | None = None) -> None:
        self._lock = threading.Lock()
        self.properties: dict[str, Property] = dict(properties or {})

    def override(self, fields: Mapping[str, Property]) -> None:
        """Replace the given columns, keeping null for columns that were nullable."""
        with self._lock:
            for key, value in fields.items():
                stored = self.properties.pop(key, None)
                if stored is not None and stored.nullable():
                    value.type.insert(DataType.NULL)
                self.properties[key] = value

    def get_type(self, column: str) -> DataType:
        """Return the data type of a column; raise KeyError if it is unknown."""
        prop = self.properties.get(column)
        if prop is None:
            raise KeyError(f"column [{column}] missing from type schema")
        return prop.data_type()

    def add_types(self, column: str, *types: DataType) -> None:
        """Add types to a column, creating it if needed."""
        with self._lock:
            prop = self.properties.get(column)
            if prop is None:
                self.properties[column] = Property(HashSet(*types))
            else:
                prop.type.insert(*types)

    def get_property(self, column: str) -> Property | None:
        """Return the property of a column, or None."""
        return self.properties.get(column)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; an empty schema has no properties key."""
        with self._lock:
            items = list(self.properties.items())
        if not items:
            return {}
        return {"properties": {key: prop.to_dict() for key, prop in items}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TypeSchema:
        """Build a schema from its JSON form."""
        properties = (data or {}).get("properties") or {}
        return cls({key: Property.from_dict(value) for key, value in properties.items()})

    def __len__(self) -> int:
        return len(self.properties)

    def __contains__(self, column: object) -> bool:
        return column in self.properties