"""Raw records as read from a source, and their Debezium envelope."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

OLAKE_ID = "_olake_id"
OLAKE_TIMESTAMP = "_olake_timestamp"
OP_TYPE = "_op_type"
CDC_TIMESTAMP = "_cdc_timestamp"
DB_NAME = "_db"

_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


def _format_time(value: datetime | None) -> str:
    """Format a datetime as RFC 3339 with trimmed fractional seconds."""
    if value is None:
        return "0001-01-01T00:00:00Z"
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    fraction = f"{value.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _dumps(value: Any) -> str:
    return json.dumps(
        value, default=_json_default, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def _field(type_name: str, name: str) -> dict[str, Any]:
    return {"type": type_name, "optional": True, "field": name}


def _schema_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "int32" if _INT32_MIN <= value <= _INT32_MAX else "int64"
    if isinstance(value, float):
        return "float64"
    if isinstance(value, datetime):
        return "timestamptz"
    return "string"


@dataclass
class RawRecord:
    """A record read from a source, with its identity and change metadata."""

    data: dict[str, Any] = field(default_factory=dict)
    olake_id: str = ""
    olake_timestamp: datetime | None = None
    operation_type: str = ""
    cdc_timestamp: datetime | None = None

    def _debezium_schema(self, db: str, stream: str, normalization: bool) -> dict[str, Any]:
        fields = [_field("string", OLAKE_ID)]
        if normalization:
            fields.extend(_field(_schema_type(self.data[key]), key) for key in sorted(self.data))
        else:
            fields.append(_field("string", "data"))
        fields.extend(
            [
                _field("string", OP_TYPE),
                _field("string", DB_NAME),
                _field("timestamptz", CDC_TIMESTAMP),
                _field("timestamptz", OLAKE_TIMESTAMP),
            ]
        )
        return {"type": "struct", "fields": fields, "optional": False, "name": f"{db}.{stream}"}

    def to_debezium_format(self, db: str, stream: str, normalization: bool) -> str:
        """Return the record as a Debezium-style JSON document."""
        schema = self._debezium_schema(db, stream, normalization)
        payload: dict[str, Any] = {OLAKE_ID: self.olake_id}
        try:
            if normalization:
                payload.update(self.data)
            else:
                payload["data"] = _dumps(self.data)
            payload[OP_TYPE] = self.operation_type
            payload[DB_NAME] = db
            payload[CDC_TIMESTAMP] = self.cdc_timestamp
            payload[OLAKE_TIMESTAMP] = self.olake_timestamp
            record = {
                "destination_table": stream,
                "key": {
                    "schema": {
                        "type": "struct",
                        "fields": [_field("string", OLAKE_ID)],
                        "optional": False,
                    },
                    "payload": {OLAKE_ID: self.olake_id},
                },
                "value": {"schema": schema, "payload": payload},
            }
            return _dumps(record)
        except (TypeError, ValueError) as err:
            raise ValueError(f"failed to encode record: {err}") from err


def create_raw_record(
    olake_id: str, data: dict[str, Any], operation_type: str, cdc_timestamp: datetime | None
) -> RawRecord:
    """Return a raw record without an ingestion timestamp."""
    return RawRecord(
        data=data, olake_id=olake_id, operation_type=operation_type, cdc_timestamp=cdc_timestamp
    )