"""Column type tracking with type widening, and schema resolution from samples."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from olake.datatype import type_from_value
from olake.enums import DataType
from olake.reformat import NullValueError, reformat_value
from olake.sets import HashSet
from olake.type_schema import Property, TypeSchema
from olake.utils import _go_sprint


@dataclass
class _TypeNode:
    t: DataType
    left: _TypeNode | None = None
    right: _TypeNode | None = None


_TYPECAST_TREE = _TypeNode(
    DataType.STRING,
    left=_TypeNode(
        DataType.FLOAT64,
        left=_TypeNode(
            DataType.INT64,
            left=_TypeNode(DataType.INT32, left=_TypeNode(DataType.BOOL)),
        ),
        right=_TypeNode(DataType.FLOAT32),
    ),
    right=_TypeNode(
        DataType.TIMESTAMP_NANO,
        left=_TypeNode(
            DataType.TIMESTAMP_MICRO,
            left=_TypeNode(DataType.TIMESTAMP_MILLI, left=_TypeNode(DataType.TIMESTAMP)),
        ),
    ),
)


def get_common_ancestor_type(t1: DataType, t2: DataType) -> DataType:
    """Return the narrowest type both t1 and t2 can be cast to."""
    a, b = DataType(t1).value, DataType(t2).value
    node = _TYPECAST_TREE
    while node is not None:
        current = node.t.value
        if a > current and b > current:
            node = node.right
        elif a < current and b < current:
            node = node.left
        else:
            return node.t
    return DataType.UNKNOWN


class Field:
    """The types seen for one column, with a lazily computed common type."""

    def __init__(self, data_type: DataType) -> None:
        data_type = DataType(data_type)
        self.data_type: DataType | None = data_type
        self.is_null = False
        self.type_occurrence: dict[DataType, bool] = {data_type: True}

    def get_type(self) -> DataType:
        """Return the common type of every type seen."""
        if self.data_type is not None:
            return self.data_type
        seen = list(self.type_occurrence)
        if not seen:
            raise ValueError("Field typeOccurrence can't be empty")
        common = seen[0]
        for other in seen[1:]:
            common = get_common_ancestor_type(common, other)
        self.data_type = common
        return common

    def types(self) -> list[DataType]:
        """Return the field's type, preceded by null when the field is nullable."""
        if self.is_nullable():
            return [DataType.NULL, self.get_type()]
        return [self.get_type()]

    def set_nullable(self) -> None:
        """Mark the field as nullable."""
        self.is_null = True

    def is_nullable(self) -> bool:
        """Return True if the field was marked nullable or null was seen."""
        return self.is_null or DataType.NULL in self.type_occurrence

    def merge(self, other: Field) -> None:
        """Add the types of other; a new type resets the cached common type."""
        for data_type in other.type_occurrence:
            if data_type not in self.type_occurrence:
                self.type_occurrence[data_type] = True
                self.data_type = None

    def __repr__(self) -> str:
        return f"Field({list(self.type_occurrence)!r}, nullable={self.is_nullable()})"


class Fields(dict[str, Field]):
    """Column name to Field mapping."""

    def merge(self, other: Mapping[str, Field]) -> None:
        """Add fields of other, merging types of fields present in both."""
        for name, other_field in other.items():
            current = self.get(name)
            if current is not None:
                current.merge(other_field)
            else:
                self[name] = other_field

    def clone(self) -> Fields:
        """Return a copy whose fields can be changed independently."""
        clone = Fields()
        for name, payload in self.items():
            copied = Field(DataType.NULL)
            copied.data_type = payload.data_type
            copied.type_occurrence = dict(payload.type_occurrence)
            clone[name] = copied
        return clone

    def override_types(self, other: Mapping[str, Field]) -> None:
        """Take over the types of fields that other also has."""
        for name, other_field in other.items():
            current = self.get(name)
            if current is not None:
                current.type_occurrence = other_field.type_occurrence
                current.data_type = other_field.data_type

    def add(self, other: Mapping[str, Field]) -> None:
        """Add fields of other that are missing here."""
        for name, other_field in other.items():
            self.setdefault(name, other_field)

    def header(self) -> list[str]:
        """Return the field names in sorted order."""
        return sorted(self)

    def process(self, record: Mapping[str, Any]) -> tuple[bool, bool, Fields]:
        """Fold a record's values into the fields.

        Returns whether new columns appeared, whether a column's type
        widened, and the fields that changed.
        """
        change = False
        type_change = False
        mutations = Fields()
        for key, value in record.items():
            detected = type_from_value(value)
            existing = self.get(key)
            if existing is not None:
                current = existing.get_type()
                if detected != DataType.NULL and current != detected:
                    existing.merge(Field(detected))
                    if existing.get_type() != current:
                        type_change = True
                        mutations[key] = Field(detected)
            else:
                change = True
                mutations[key] = Field(detected)
        self.merge(mutations)
        return change, type_change, mutations

    def to_properties(self) -> dict[str, Property]:
        """Return a schema property for each field."""
        return {name: Property(HashSet(*f.types())) for name, f in self.items()}

    @classmethod
    def from_schema(cls, schema: TypeSchema) -> Fields:
        """Build fields from the data types of a type schema."""
        return cls({name: Field(prop.data_type()) for name, prop in schema.properties.items()})

    def to_type_schema(self) -> TypeSchema:
        """Return a type schema holding each field's type."""
        schema = TypeSchema()
        for name, f in self.items():
            schema.add_types(name, f.get_type())
        return schema


def reformat_record(fields: Mapping[str, Field], record: dict[str, Any]) -> None:
    """Convert every value of record, in place, to its field's type."""
    for key, value in list(record.items()):
        f = fields.get(key)
        if f is None:
            raise ValueError(f"missing field [{key}]")
        try:
            record[key] = reformat_value(f.get_type(), value)
        except NullValueError:
            record[key] = None
        except (TypeError, ValueError) as err:
            raise ValueError(
                f"failed to reformat value[{_go_sprint(value)}] to datatype"
                f"[{f.get_type().value}] for key[{key}]: {err}"
            ) from err


def resolve(stream: Any, *objects: Mapping[str, Any]) -> None:
    """Infer column types of stream from sample objects.

    A column missing from any object after it was first seen becomes nullable.
    """
    all_fields = Fields()
    for obj in objects:
        fields = Fields({key: Field(type_from_value(value)) for key, value in obj.items()})
        for name, f in all_fields.items():
            if name not in obj:
                f.set_nullable()
        all_fields.merge(fields)
    for column, f in all_fields.items():
        stream.upsert_field(column, f.get_type(), f.is_nullable())


def _types_of(values: Iterable[Any]) -> list[DataType]:
    return [type_from_value(value) for value in values]