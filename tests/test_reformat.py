import math
from datetime import date, datetime, timedelta, timezone

import pytest

from olake.enums import DataType
from olake.reformat import (
    NullValueError,
    parse_string_timestamp,
    reformat_byte_arrays_to_string,
    reformat_date,
    reformat_float32,
    reformat_float64,
    reformat_int32,
    reformat_int64,
    reformat_value,
    reformat_value_on_data_types,
)

UTC = timezone.utc


def test_null_type_raises_null_value_error():
    with pytest.raises(NullValueError):
        reformat_value(DataType.NULL, 5)


def test_null_value_error_is_value_error():
    with pytest.raises(ValueError, match="null value"):
        reformat_value(DataType.NULL, "x")


@pytest.mark.parametrize("text", ["1", "t", "T", "true", "TRUE", "True", "YES", "Yes", "yes"])
def test_bool_true_strings(text):
    assert reformat_value(DataType.BOOL, text) is True


@pytest.mark.parametrize("text", ["0", "f", "F", "false", "FALSE", "False", "NO", "No", "no"])
def test_bool_false_strings(text):
    assert reformat_value(DataType.BOOL, text) is False


def test_bool_passthrough_and_int_one():
    assert reformat_value(DataType.BOOL, False) is False
    assert reformat_value(DataType.BOOL, 1) is True


@pytest.mark.parametrize("value", ["maybe", 5, 1.0, None])
def test_bool_invalid_values(value):
    with pytest.raises(ValueError, match="not boolean"):
        reformat_value(DataType.BOOL, value)


def test_int64_from_string_and_bool():
    assert reformat_int64("42") == 42
    assert reformat_int64("-42") == -42
    assert reformat_int64(True) == 1
    assert reformat_int64(False) == 0


def test_int64_truncates_float():
    assert reformat_int64(3.9) == 3


def test_int64_string_errors():
    with pytest.raises(ValueError):
        reformat_int64("abc")
    with pytest.raises(ValueError):
        reformat_int64(" 4")
    with pytest.raises(ValueError, match="out of range"):
        reformat_int64(str(2**63))


def test_int64_accepts_bounds():
    assert reformat_int64(str(2**63 - 1)) == 2**63 - 1
    assert reformat_int64(str(-(2**63))) == -(2**63)


def test_int64_unsupported_type():
    with pytest.raises(TypeError, match="int64"):
        reformat_int64(object())


def test_int32_range():
    assert reformat_int32(str(2**31 - 1)) == 2**31 - 1
    with pytest.raises(ValueError, match="out of range"):
        reformat_int32(str(2**31))


def test_int32_wraps_into_range():
    result = reformat_int32(2**40 + 7)
    assert -(2**31) <= result < 2**31
    assert reformat_int32(123) == 123


def test_float64_conversions():
    assert reformat_float64("1.5") == 1.5
    assert reformat_float64(7) == 7.0
    assert reformat_float64(True) == 1.0
    assert reformat_float64("inf") == math.inf
    assert math.isnan(reformat_float64("NaN"))


@pytest.mark.parametrize("text", ["1e400", " 1.5", "1_0", "abc", ""])
def test_float64_invalid_strings(text):
    with pytest.raises(ValueError):
        reformat_float64(text)


def test_float64_unsupported_type():
    with pytest.raises(TypeError):
        reformat_float64([1])


def test_float32_exact_and_overflow():
    assert reformat_float32(0.5) == 0.5
    assert reformat_float32(1e40) == math.inf
    with pytest.raises(ValueError, match="out of range"):
        reformat_float32("1e40")


def test_float32_rounding_is_idempotent():
    once = reformat_float32(0.1)
    assert reformat_float32(once) == once
    assert abs(once - 0.1) < 1e-7


def test_string_conversions():
    assert reformat_value(DataType.STRING, 12) == "12"
    assert reformat_value(DataType.STRING, True) == "true"
    assert reformat_value(DataType.STRING, b"abc") == "abc"
    assert reformat_value(DataType.STRING, "same") == "same"


def test_array_conversion():
    values = [1, 2]
    assert reformat_value(DataType.ARRAY, values) is values
    assert reformat_value(DataType.ARRAY, 3) == [3]


def test_other_types_pass_through():
    obj = {"a": 1}
    assert reformat_value(DataType.OBJECT, obj) is obj
    assert reformat_value(DataType.TIMESTAMP_MILLI, "raw") == "raw"


def test_reformat_value_on_data_types():
    assert reformat_value_on_data_types([DataType.NULL, DataType.INT64], "5") == 5
    with pytest.raises(NullValueError):
        reformat_value_on_data_types([DataType.NULL], "5")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2024-03-05", datetime(2024, 3, 5, tzinfo=UTC)),
        ("2024-03-05 10:20:30", datetime(2024, 3, 5, 10, 20, 30, tzinfo=UTC)),
        ("2024-03-05T10:20:30", datetime(2024, 3, 5, 10, 20, 30, tzinfo=UTC)),
        ("2024-03-05T10:20:30.123456", datetime(2024, 3, 5, 10, 20, 30, 123456, tzinfo=UTC)),
        ("2024-03-05T10:20:30Z", datetime(2024, 3, 5, 10, 20, 30, tzinfo=UTC)),
        (
            "2024-03-05T10:20:30+05:30",
            datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone(timedelta(hours=5, minutes=30))),
        ),
        (
            "2024-03-05 10:20:30 -07:00",
            datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone(-timedelta(hours=7))),
        ),
        (
            "2024-03-05 10:20:30-07",
            datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone(-timedelta(hours=7))),
        ),
        ("2024-03-05T10:20:30+0000", datetime(2024, 3, 5, 10, 20, 30, tzinfo=UTC)),
        (
            "2024-03-05 10:20:30.250000+00",
            datetime(2024, 3, 5, 10, 20, 30, 250000, tzinfo=UTC),
        ),
    ],
)
def test_parse_string_timestamp_layouts(text, expected):
    assert parse_string_timestamp(text) == expected


@pytest.mark.parametrize("text", ["not a date", "", "2024-13-01", "2024-02-30", "2024/01/01"])
def test_parse_string_timestamp_invalid(text):
    with pytest.raises(ValueError, match="failed to parse datetime"):
        parse_string_timestamp(text)


def test_reformat_date_epoch_and_zero():
    assert reformat_date(0) == datetime(1970, 1, 1, tzinfo=UTC)
    assert reformat_date(None) == datetime(1, 1, 1, tzinfo=UTC)


def test_reformat_date_unix_round_trip():
    moment = datetime(2023, 7, 14, 8, 30, 15, tzinfo=UTC)
    assert reformat_date(int(moment.timestamp())) == moment


def test_reformat_date_clamps_years():
    late = reformat_date(10**13)
    assert late.year == 9999
    early = reformat_date(-(10**13))
    assert early.year == 1


def test_reformat_date_passthrough_and_date():
    moment = datetime(2020, 1, 2, 3, 4, 5)
    assert reformat_date(moment) is moment
    assert reformat_date(date(2020, 1, 2)) == datetime(2020, 1, 2, tzinfo=UTC)


@pytest.mark.parametrize("value", [1.5, True, [1]])
def test_reformat_date_unhandled_types(value):
    with pytest.raises(TypeError, match="unable to parse into time"):
        reformat_date(value)


def test_timestamp_type_uses_reformat_date():
    assert reformat_value(DataType.TIMESTAMP, "2024-03-05") == datetime(2024, 3, 5, tzinfo=UTC)


def test_reformat_byte_arrays_to_string_nested():
    data = {
        "raw": b"abc",
        "nested": {"inner": b"xyz", "keep": 1},
        "items": [b"one", {"deep": b"two"}, 3],
        "text": "plain",
    }
    result = reformat_byte_arrays_to_string(data)
    assert result is data
    assert result == {
        "raw": "abc",
        "nested": {"inner": "xyz", "keep": 1},
        "items": ["one", {"deep": "two"}, 3],
        "text": "plain",
    }