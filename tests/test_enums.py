import pytest

from olake.enums import (
    Action,
    AdapterType,
    ConnectionStatus,
    DataType,
    MessageType,
    SyncMode,
    WriterConfig,
    keys,
)


def test_sync_mode_values():
    assert SyncMode("cdc") is SyncMode.CDC
    assert SyncMode.FULL_REFRESH == "full_refresh"
    assert SyncMode.INCREMENTAL.value == "incremental"


def test_data_type_text_form():
    assert str(DataType.INT32) == "integer_small"
    assert DataType("timestamp_nano") is DataType.TIMESTAMP_NANO


@pytest.mark.parametrize(
    "text, member",
    [
        ("null", DataType.NULL),
        ("integer_small", DataType.INT32),
        ("integer", DataType.INT64),
        ("number_small", DataType.FLOAT32),
        ("number", DataType.FLOAT64),
        ("string", DataType.STRING),
        ("boolean", DataType.BOOL),
        ("object", DataType.OBJECT),
        ("array", DataType.ARRAY),
        ("unknown", DataType.UNKNOWN),
        ("timestamp", DataType.TIMESTAMP),
        ("timestamp_milli", DataType.TIMESTAMP_MILLI),
        ("timestamp_micro", DataType.TIMESTAMP_MICRO),
        ("timestamp_nano", DataType.TIMESTAMP_NANO),
    ],
)
def test_data_type_values(text, member):
    assert DataType(text) is member
    assert member.value == text


def test_message_and_status_values():
    assert MessageType.CONNECTION_STATUS == "CONNECTION_STATUS"
    assert ConnectionStatus.FAILED == "FAILED"
    assert Action("ALTER") is Action.ALTER


def test_writer_config_from_dict():
    config = WriterConfig.from_dict({"type": "PARQUET", "writer": {"local_path": "/tmp/out"}})
    assert config.type is AdapterType.PARQUET
    assert config.writer_config == {"local_path": "/tmp/out"}


def test_writer_config_round_trip():
    config = WriterConfig(AdapterType.S3_ICEBERG, {"iceberg_db": "db"})
    assert WriterConfig.from_dict(config.to_dict()) == config


def test_writer_config_missing_writer_defaults_to_none():
    assert WriterConfig.from_dict({"type": "ICEBERG"}).writer_config is None


def test_writer_config_rejects_unknown_type():
    with pytest.raises(ValueError, match="invalid destination type"):
        WriterConfig.from_dict({"type": "KAFKA"})


def test_writer_config_rejects_non_mapping():
    with pytest.raises(ValueError):
        WriterConfig.from_dict(["PARQUET"])


def test_keys_lists_mapping_keys():
    assert keys({"a": 1, "b": 2}) == ["a", "b"]
    assert keys({}) == []