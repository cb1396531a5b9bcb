import json
from datetime import datetime, timezone

import pytest

from olake.records import (
    CDC_TIMESTAMP,
    DB_NAME,
    OLAKE_ID,
    OLAKE_TIMESTAMP,
    OP_TYPE,
    RawRecord,
    create_raw_record,
)

MOMENT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_create_raw_record():
    record = create_raw_record("id-1", {"a": 1}, "c", MOMENT)
    assert record.olake_id == "id-1"
    assert record.data == {"a": 1}
    assert record.operation_type == "c"
    assert record.cdc_timestamp == MOMENT
    assert record.olake_timestamp is None


def test_debezium_not_normalized():
    data = {"name": "x", "n": 3}
    record = create_raw_record("id-1", data, "r", MOMENT)
    parsed = json.loads(record.to_debezium_format("db1", "users", False))
    assert parsed["destination_table"] == "users"
    assert parsed["key"]["payload"] == {OLAKE_ID: "id-1"}
    payload = parsed["value"]["payload"]
    assert json.loads(payload["data"]) == data
    assert payload[OP_TYPE] == "r"
    assert payload[DB_NAME] == "db1"
    names = [f["field"] for f in parsed["value"]["schema"]["fields"]]
    assert names == [OLAKE_ID, "data", OP_TYPE, DB_NAME, CDC_TIMESTAMP, OLAKE_TIMESTAMP]
    assert parsed["value"]["schema"]["name"] == "db1.users"


def test_debezium_normalized_field_types():
    data = {"flag": True, "small": 5, "big": 1 << 40, "ratio": 0.5, "at": MOMENT, "text": "t"}
    record = RawRecord(data=data, olake_id="k", operation_type="u")
    parsed = json.loads(record.to_debezium_format("db", "s", True))
    types = {f["field"]: f["type"] for f in parsed["value"]["schema"]["fields"]}
    assert types["flag"] == "boolean"
    assert types["small"] == "int32"
    assert types["big"] == "int64"
    assert types["ratio"] == "float64"
    assert types["at"] == "timestamptz"
    assert types["text"] == "string"
    payload = parsed["value"]["payload"]
    assert payload["small"] == 5
    assert payload["flag"] is True
    assert "data" not in payload


def test_debezium_rejects_unserialisable_data():
    record = RawRecord(data={"bad": object()}, olake_id="k")
    with pytest.raises(ValueError):
        record.to_debezium_format("db", "s", True)