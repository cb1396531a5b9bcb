import pytest

from olake.enums import DataType
from olake.sets import HashSet
from olake.type_schema import Property, TypeSchema


def test_property_data_type_skips_null():
    prop = Property(HashSet(DataType.NULL, DataType.STRING))
    assert prop.data_type() is DataType.STRING
    assert prop.nullable()


def test_property_only_null():
    prop = Property(HashSet(DataType.NULL))
    assert prop.data_type() is DataType.NULL


def test_property_not_nullable():
    assert not Property(HashSet(DataType.INT64)).nullable()


def test_add_types_and_get_type():
    schema = TypeSchema()
    schema.add_types("id", DataType.INT64)
    schema.add_types("id", DataType.NULL)
    assert schema.get_type("id") is DataType.INT64
    assert schema.get_property("id").nullable()


def test_get_type_missing_column():
    with pytest.raises(KeyError, match="missing from type schema"):
        TypeSchema().get_type("absent")


def test_get_property_missing_is_none():
    assert TypeSchema().get_property("absent") is None


def test_override_keeps_nullability():
    schema = TypeSchema()
    schema.add_types("name", DataType.STRING, DataType.NULL)
    schema.override({"name": Property(HashSet(DataType.INT32))})
    prop = schema.get_property("name")
    assert prop.data_type() is DataType.INT32
    assert prop.nullable()


def test_override_adds_new_column_without_null():
    schema = TypeSchema()
    schema.override({"fresh": Property(HashSet(DataType.BOOL))})
    assert not schema.get_property("fresh").nullable()
    assert "fresh" in schema


def test_dict_round_trip():
    schema = TypeSchema()
    schema.add_types("a", DataType.FLOAT64, DataType.NULL)
    schema.add_types("b", DataType.TIMESTAMP)
    restored = TypeSchema.from_dict(schema.to_dict())
    assert restored.to_dict() == schema.to_dict()
    assert restored.get_type("b") is DataType.TIMESTAMP


def test_to_dict_shape():
    schema = TypeSchema()
    schema.add_types("a", DataType.STRING)
    assert schema.to_dict() == {"properties": {"a": {"type": ["string"]}}}


def test_empty_schema_dict():
    assert TypeSchema().to_dict() == {}
    assert len(TypeSchema.from_dict(None)) == 0