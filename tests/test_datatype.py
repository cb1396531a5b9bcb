from datetime import datetime, timezone

import pytest

from olake.datatype import detect_timestamp_precision, maximum_on_data_type, type_from_value
from olake.enums import DataType

UTC = timezone.utc


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, DataType.NULL),
        (True, DataType.BOOL),
        (5, DataType.INT32),
        (2**31 - 1, DataType.INT32),
        (2**31, DataType.INT64),
        (-(2**40), DataType.INT64),
        (1.5, DataType.FLOAT64),
        ("hello", DataType.STRING),
        ("2024-01-01", DataType.TIMESTAMP),
        ("2024-01-01T00:00:00Z", DataType.TIMESTAMP),
        ("2024-01-01T00:00:00.123Z", DataType.TIMESTAMP_MILLI),
        ("2024-01-01T00:00:00.123456Z", DataType.TIMESTAMP_MICRO),
        ("2024-01-01T00:00:00.123456789Z", DataType.TIMESTAMP_NANO),
        ([1, 2], DataType.ARRAY),
        ((1,), DataType.ARRAY),
        (b"ab", DataType.ARRAY),
        ({"a": 1}, DataType.OBJECT),
        (object(), DataType.UNKNOWN),
    ],
)
def test_type_from_value(value, expected):
    assert type_from_value(value) == expected


@pytest.mark.parametrize(
    ("microsecond", "expected"),
    [
        (0, DataType.TIMESTAMP),
        (123000, DataType.TIMESTAMP_MILLI),
        (123456, DataType.TIMESTAMP_MICRO),
    ],
)
def test_detect_timestamp_precision(microsecond, expected):
    moment = datetime(2024, 1, 1, 12, 0, 0, microsecond, tzinfo=UTC)
    assert detect_timestamp_precision(moment) == expected
    assert type_from_value(moment) == expected


def test_maximum_int64_returns_original_value():
    assert maximum_on_data_type(DataType.INT64, 3, "7") == "7"
    assert maximum_on_data_type(DataType.INT64, "9", 2) == "9"


def test_maximum_int64_equal_returns_second():
    assert maximum_on_data_type(DataType.INT64, 5, "5") == "5"


def test_maximum_timestamp_picks_later():
    earlier = "2024-01-01"
    later = "2024-06-01T10:00:00Z"
    assert maximum_on_data_type(DataType.TIMESTAMP, earlier, later) == later
    assert maximum_on_data_type(DataType.TIMESTAMP, later, earlier) == later


def test_maximum_timestamp_equal_returns_first():
    moment = datetime(2024, 1, 1, tzinfo=UTC)
    assert maximum_on_data_type(DataType.TIMESTAMP, "2024-01-01", moment) == "2024-01-01"


def test_maximum_timestamp_mixes_naive_and_aware():
    naive = datetime(2030, 1, 1)
    assert maximum_on_data_type(DataType.TIMESTAMP, "2024-01-01", naive) is naive


def test_maximum_unsupported_type():
    with pytest.raises(ValueError, match="comparison not available"):
        maximum_on_data_type(DataType.STRING, "a", "b")


@pytest.mark.parametrize(
    ("data_type", "a", "b"),
    [
        (DataType.INT64, "abc", 1),
        (DataType.INT64, 1, object()),
        (DataType.TIMESTAMP, "not a date", "2024-01-01"),
        (DataType.TIMESTAMP, "2024-01-01", 1.5),
    ],
)
def test_maximum_reformat_failures(data_type, a, b):
    with pytest.raises(ValueError, match="while comparing"):
        maximum_on_data_type(data_type, a, b)