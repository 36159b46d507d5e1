from __future__ import annotations

import logging
import math
from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Literal, Optional

import pytest
from pydantic import BaseModel

from positional_langchain_parser import (
    ABSENT,
    MULTI,
    CodecConfig,
    ParseError,
    PassthroughValidator,
    PydanticValidator,
    ValidationError,
    analyze_model,
    decode,
    decode_rows,
    encode_row,
    encode_rows,
    parse_row_raw,
)
from positional_langchain_parser import row_parser
from positional_langchain_parser.prompting import example_row
from positional_langchain_parser.row_parser import prune_absent


class Person(BaseModel):
    id: int
    name: str


class Product(BaseModel):
    name: str
    description: str


class Contact(BaseModel):
    name: str
    phone: Optional[str] = None


class Tagged(BaseModel):
    tags: List[str]


class User(BaseModel):
    name: str
    email: str


class Account(BaseModel):
    user: User
    active: bool


class Nick(BaseModel):
    nick: Optional[str]
    label: str


class Item(BaseModel):
    sku: str
    qty: int


class Cart(BaseModel):
    owner: str
    items: List[Item]


class Event(BaseModel):
    title: str
    at: datetime


class Address(BaseModel):
    street: str
    city: str


class Member(BaseModel):
    name: str
    age: int
    active: bool
    tags: List[str]
    address: Address
    nick: Optional[str] = None


def run(text, model, mode="single", cfg=None):
    return decode(text, analyze_model(model), PydanticValidator(model), cfg, mode)


def test_single_row():
    result = run("42|Alice", Person)
    assert result.records == [Person(id=42, name="Alice")]
    assert result.warnings == []


def test_multi_rows():
    result = run("1|Alice\n2|Bob\n3|Charlie", Person, MULTI)
    assert [r.name for r in result.records] == ["Alice", "Bob", "Charlie"]
    assert result.row_count == 3


def test_escaped_delimiter_in_value():
    result = run("Product|red\\|blue variant", Product)
    assert result.records[0].description == "red|blue variant"


def test_empty_field_becomes_absent_then_default():
    positions = analyze_model(Contact)
    assert decode_rows("Alice|", positions) == [{"name": "Alice", "phone": ABSENT}]
    assert run("Alice|", Contact).records[0].phone is None


def test_array_field():
    assert run("a;b;c", Tagged).records[0].tags == ["a", "b", "c"]


def test_nested_object():
    account = run("John|john@example.com|true", Account).records[0]
    assert account.user.name == "John"
    assert account.user.email == "john@example.com"
    assert account.active is True


def test_nullable_null_literal():
    rec = run("NULL|x", Nick).records[0]
    assert rec.nick is None
    # nullable이 아닌 문자열 필드의 "null"은 그대로 문자열
    assert run("null|null", Nick).records[0].label == "null"


def test_json_column():
    cart = run('bob|[{"sku":"A","qty":2},{"sku":"B","qty":1}]', Cart).records[0]
    assert [i.sku for i in cart.items] == ["A", "B"]
    assert cart.items[0].qty == 2


def test_date_column():
    event = run("Launch|2024-01-15T10:30:00", Event).records[0]
    assert event.at == datetime(2024, 1, 15, 10, 30)


def test_whitespace_and_blank_lines_are_ignored():
    result = run("  1|Alice  \n\n   \n 2|Bob ", Person, MULTI)
    assert [r.id for r in result.records] == [1, 2]


def test_single_mode_with_many_rows_warns_and_uses_first():
    result = run("1|Alice\n2|Bob\n3|Charlie", Person)
    assert len(result.records) == 1
    assert result.records[0].name == "Alice"
    assert result.warnings == ["Expected single object but got 3 rows. Using first row."]


def test_column_count_mismatch():
    with pytest.raises(ParseError) as exc:
        run("1|Alice|extra", Person)
    assert exc.value.expected_columns == 2
    assert exc.value.actual_columns == 3
    assert exc.value.row_index == 0
    assert "Expected 2 columns but got 3" in str(exc.value)


def test_column_mismatch_on_later_row_fails_whole_call():
    with pytest.raises(ParseError) as exc:
        run("1|Alice\n2", Person, MULTI)
    assert exc.value.row_index == 1
    assert exc.value.actual_columns == 1
    assert exc.value.raw_response == "2"


@pytest.mark.parametrize("text", ["", "   ", "\n\n  \n"])
def test_no_data_rows(text):
    with pytest.raises(ParseError) as exc:
        run(text, Person)
    assert exc.value.actual_columns == 0
    assert exc.value.expected_columns == 2


def test_validation_error_carries_issues_and_parsed_data():
    with pytest.raises(ValidationError) as exc:
        run("abc|Alice", Person)
    err = exc.value
    assert err.row_index == 0
    assert err.issues
    assert err.issues[0]["loc"] == ("id",)
    assert err.parsed_data["name"] == "Alice"
    assert math.isnan(err.parsed_data["id"])


def test_validation_error_row_index_in_multi_mode():
    with pytest.raises(ValidationError) as exc:
        run("1|Alice\nxyz|Bob", Person, MULTI)
    assert exc.value.row_index == 1


def test_parse_and_validation_errors_are_value_errors():
    assert issubclass(ParseError, ValueError)
    assert issubclass(ValidationError, ValueError)


def test_passthrough_validator_drops_absent():
    positions = analyze_model(Contact)
    result = decode("Alice|", positions, PassthroughValidator())
    assert result.records == [{"name": "Alice"}]


def test_custom_delimiters():
    cfg = CodecConfig(delimiter="::", sub_delimiter=",")
    positions = analyze_model(Tagged)
    assert parse_row_raw("x,y", positions, cfg) == {"tags": ["x", "y"]}
    assert run("7::Zed", Person, cfg=cfg).records[0] == Person(id=7, name="Zed")


def test_encode_row_escapes_values():
    assert encode_row({"name": "a|b", "description": "x\\y"}, analyze_model(Product)) == "a\\|b|x\\\\y"


def test_encode_then_decode_gives_same_record():
    positions = analyze_model(Member)
    member = Member(
        name="Ann|Lee",
        age=30,
        active=False,
        tags=["x", "y"],
        address=Address(street="1 Main\\St", city="Oslo"),
        nick=None,
    )
    row = encode_row(member, positions)
    assert row == "Ann\\|Lee|30|false|x;y|1 Main\\\\St|Oslo|null"
    assert decode(row, positions, PydanticValidator(Member)).records == [member]


def test_encode_rows_multi():
    people = [Person(id=1, name="A"), Person(id=2, name="B")]
    text = encode_rows(people, analyze_model(Person))
    assert text == "1|A\n2|B"
    assert run(text, Person, MULTI).records == people


def test_code_fence_is_unwrapped():
    result = run("```text\n1|Alice\n2|Bob\n```", Person, MULTI)
    assert [r.name for r in result.records] == ["Alice", "Bob"]
    assert run("```\n3|Cy\n```", Person).records[0].id == 3


def test_oversized_integer_is_a_validation_error_not_a_crash():
    with pytest.raises(ValidationError):
        run("1" * 5000 + "|Alice", Person)


class Priority(IntEnum):
    LOW = 1
    HIGH = 2


class Stage(Enum):
    DRAFT = 10
    DONE = 20


class Task(BaseModel):
    prio: Priority
    kind: Literal[1, 2]
    flag: Literal[True]
    stage: Stage


def test_non_string_choices_decode_from_example_row():
    positions = analyze_model(Task)
    row = example_row(positions, CodecConfig())
    assert row == "1|1|True|10"
    task = decode(row, positions, PydanticValidator(Task)).records[0]
    assert task.prio is Priority.LOW
    assert task.kind == 1
    assert task.flag is True
    assert task.stage is Stage.DRAFT


def test_non_string_choices_from_model_output():
    task = run("2|2|true|20", Task).records[0]
    assert task.prio is Priority.HIGH
    assert task.kind == 2
    assert task.flag is True
    assert task.stage is Stage.DONE
    with pytest.raises(ValidationError):
        run("3|1|true|10", Task)


class Votes(BaseModel):
    picks: List[Literal[1, 2]]


class Ranked(BaseModel):
    title: str
    task: Task


def test_choices_inside_arrays_and_nested_objects():
    assert run("1;2;1", Votes).records[0].picks == [1, 2, 1]
    ranked = run("x|2|1|True|20", Ranked).records[0]
    assert ranked.task.prio is Priority.HIGH
    assert ranked.task.stage is Stage.DONE


class Profile(BaseModel):
    name: str
    addr: Optional[Address] = None


def test_nested_object_with_all_columns_empty_uses_default():
    assert run("Bob||", Profile).records[0].addr is None
    profile = run("Bob|Main St|Seoul", Profile).records[0]
    assert profile.addr == Address(street="Main St", city="Seoul")


def test_prune_keeps_originally_empty_dicts():
    assert prune_absent({"a": {}, "b": {"c": ABSENT}, "d": 1}) == {"a": {}, "d": 1}


def test_raw_preview_is_only_built_when_debug_is_enabled(monkeypatch, caplog):
    calls = []

    def fake_preview(text, *args, **kwargs):
        calls.append(text)
        return "preview"

    monkeypatch.setattr(row_parser, "safe_raw_preview", fake_preview)

    caplog.set_level(logging.WARNING, logger="positional_langchain_parser.row_parser")
    run("42|Alice", Person)
    assert calls == []

    caplog.set_level(logging.DEBUG, logger="positional_langchain_parser.row_parser")
    run("42|Alice", Person)
    assert calls == ["42|Alice"]
