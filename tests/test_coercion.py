from __future__ import annotations

import math
from datetime import datetime, timezone

from positional_langchain_parser import ABSENT, FieldKind, InvalidDate, coerce_value


def c(raw, kind, item_kind=None, sub=";"):
    return coerce_value(raw, kind, sub, item_kind)


def test_empty_string_is_absent_for_every_kind():
    for kind in FieldKind:
        assert c("", kind) is ABSENT
    assert not ABSENT
    assert repr(ABSENT) == "ABSENT"


def test_string_enum_literal_are_verbatim():
    assert c("  hello ", FieldKind.STRING) == "  hello "
    assert c("not-a-member", FieldKind.ENUM) == "not-a-member"
    assert c("whatever", FieldKind.LITERAL) == "whatever"


def test_numbers():
    assert c("42", FieldKind.NUMBER) == 42
    assert isinstance(c("42", FieldKind.NUMBER), int)
    assert c("-7", FieldKind.NUMBER) == -7
    assert c("3.14", FieldKind.NUMBER) == 3.14
    assert c("1e3", FieldKind.NUMBER) == 1000.0
    assert c(" 12 ", FieldKind.NUMBER) == 12


def test_number_special_values():
    assert math.isnan(c("NaN", FieldKind.NUMBER))
    assert c("Infinity", FieldKind.NUMBER) == math.inf
    assert c("+infinity", FieldKind.NUMBER) == math.inf
    assert c("-Infinity", FieldKind.NUMBER) == -math.inf


def test_invalid_number_is_nan_not_error():
    assert math.isnan(c("abc", FieldKind.NUMBER))
    assert math.isnan(c("12abc", FieldKind.NUMBER))


def test_booleans():
    for raw in ("true", "TRUE", " yes ", "1", "Yes"):
        assert c(raw, FieldKind.BOOLEAN) is True
    for raw in ("false", "0", "No", " FALSE "):
        assert c(raw, FieldKind.BOOLEAN) is False


def test_unrecognized_boolean_token_is_truthy():
    assert c("maybe", FieldKind.BOOLEAN) is True
    # 공백만 있으면 비어 있는 것으로 본다
    assert c("   ", FieldKind.BOOLEAN) is False


def test_dates():
    assert c("2024-01-15", FieldKind.DATE) == datetime(2024, 1, 15)
    assert c("2024-01-15T10:30:00Z", FieldKind.DATE) == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert c("2024-01-15T10:30:00+00:00", FieldKind.DATE) == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert c("2024/01/15", FieldKind.DATE) == datetime(2024, 1, 15)
    assert c("01/15/2024", FieldKind.DATE) == datetime(2024, 1, 15)


def test_invalid_date_is_sentinel():
    value = c("not a date", FieldKind.DATE)
    assert isinstance(value, InvalidDate)
    assert value.raw == "not a date"
    assert str(value) == "Invalid Date"


def test_arrays():
    assert c("a;b;c", FieldKind.ARRAY) == ["a", "b", "c"]
    assert c(" a ; b ;c ", FieldKind.ARRAY) == ["a", "b", "c"]
    assert c("single", FieldKind.ARRAY) == ["single"]
    assert c("a,b", FieldKind.ARRAY, sub=",") == ["a", "b"]


def test_array_items_are_coerced():
    assert c("1;2;3", FieldKind.ARRAY, FieldKind.NUMBER) == [1, 2, 3]
    assert c("true;no", FieldKind.ARRAY, FieldKind.BOOLEAN) == [True, False]
    assert c("a;;c", FieldKind.ARRAY, FieldKind.STRING) == ["a", ABSENT, "c"]


def test_json():
    assert c('[{"a":1},{"a":2}]', FieldKind.JSON) == [{"a": 1}, {"a": 2}]
    assert c(' {"k": "v"} ', FieldKind.JSON) == {"k": "v"}


def test_invalid_json_returns_trimmed_raw():
    assert c(" {bad ", FieldKind.JSON) == "{bad"


def test_integer_beyond_str_digit_limit_does_not_raise():
    value = c("1" * 5000, FieldKind.NUMBER)
    assert isinstance(value, float)
    assert value == math.inf
