"""Enumerations shared by connectors and writers, and the writer configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

K = TypeVar("K")


class Action(StrEnum):
    """Schema actions a destination may perform."""

    TRUNCATE = "TRUNCATE"
    CREATE = "CREATE"
    DROP = "DROP"
    ALTER = "ALTER"


class AdapterType(StrEnum):
    """Destination kinds."""

    PARQUET = "PARQUET"
    S3_ICEBERG = "S3_ICEBERG"
    ICEBERG = "ICEBERG"


class MessageType(StrEnum):
    """Kinds of messages emitted by commands."""

    LOG = "LOG"
    CONNECTION_STATUS = "CONNECTION_STATUS"
    STATE = "STATE"
    RECORD = "RECORD"
    CATALOG = "CATALOG"
    SPEC = "SPEC"
    ACTION = "ACTION"


class ConnectionStatus(StrEnum):
    """Outcome of a connection check."""

    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class SyncMode(StrEnum):
    """How a stream is synchronised."""

    FULL_REFRESH = "full_refresh"
    INCREMENTAL = "incremental"
    CDC = "cdc"


class DataType(StrEnum):
    """Column data types."""

    NULL = "null"
    INT32 = "integer_small"
    INT64 = "integer"
    FLOAT32 = "number_small"
    FLOAT64 = "number"
    STRING = "string"
    BOOL = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = "unknown"
    TIMESTAMP = "timestamp"
    TIMESTAMP_MILLI = "timestamp_milli"
    TIMESTAMP_MICRO = "timestamp_micro"
    TIMESTAMP_NANO = "timestamp_nano"


@dataclass
class WriterConfig:
    """Destination type and its own configuration."""

    type: AdapterType
    writer_config: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WriterConfig:
        """Build from the decoded destination file: {"type": ..., "writer": ...}."""
        if not isinstance(data, Mapping):
            raise ValueError("destination config must be a JSON object")
        raw = data.get("type", "")
        try:
            adapter = AdapterType(raw)
        except ValueError as err:
            raise ValueError(f"invalid destination type has been passed [{raw}]") from err
        return cls(type=adapter, writer_config=data.get("writer"))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the configuration."""
        return {"type": self.type.value, "writer": self.writer_config}


def keys(mapping: Mapping[K, Any]) -> list[K]:
    """Return the keys of a mapping as a list."""
    return list(mapping)