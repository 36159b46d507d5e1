from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Set, Union
from uuid import UUID

import pytest
from pydantic import BaseModel, Field

from positional_langchain_parser import (
    FieldKind,
    SchemaError,
    analyze,
    analyze_json_schema,
    analyze_model,
    position_map,
)
from positional_langchain_parser.schema_nodes import Primitive


class Address(BaseModel):
    street: str
    city: str


class Color(str, Enum):
    RED = "red"
    GREEN = "green"


class Item(BaseModel):
    sku: str
    qty: int


class Order(BaseModel):
    id: int
    customer: str
    shipping: Address
    note: Optional[str] = None
    status: Color
    kind: Literal["order"]
    tags: List[str]
    scores: List[float] = []
    items: List[Item]
    created: datetime
    paid: bool


class Profile(BaseModel):
    name: str
    address: Optional[Address] = None


class WithMap(BaseModel):
    name: str
    meta: Dict[str, str]


class WithSet(BaseModel):
    labels: Set[str]


class TreeNode(BaseModel):
    name: str
    children: List["TreeNode"] = []


class Loose(BaseModel):
    uid: UUID
    either: Union[int, str]
    choice: Literal["a", "b"]


class Inner(BaseModel):
    c: str


class Middle(BaseModel):
    b: Inner
    d: int


class Outer(BaseModel):
    a: Middle
    e: str


class Aliased(BaseModel):
    user_name: str = Field(alias="userName")


def summary(positions):
    return [(p.path, p.kind, p.optional, p.nullable) for p in positions]


def test_flattening_order_and_kinds():
    positions = analyze_model(Order)
    assert [p.path for p in positions] == [
        "id", "customer", "shipping.street", "shipping.city", "note", "status",
        "kind", "tags", "scores", "items", "created", "paid",
    ]
    assert [p.index for p in positions] == list(range(len(positions)))

    by_path = position_map(positions)
    assert by_path["id"].kind == FieldKind.NUMBER
    assert by_path["customer"].kind == FieldKind.STRING
    assert by_path["shipping.city"].kind == FieldKind.STRING
    assert by_path["status"].kind == FieldKind.ENUM
    assert by_path["status"].enum_values == ("red", "green")
    assert by_path["kind"].kind == FieldKind.LITERAL
    assert by_path["kind"].literal_value == "order"
    assert by_path["tags"].kind == FieldKind.ARRAY
    assert by_path["tags"].array_item_kind == FieldKind.STRING
    assert by_path["scores"].array_item_kind == FieldKind.NUMBER
    assert by_path["items"].kind == FieldKind.JSON
    assert by_path["created"].kind == FieldKind.DATE
    assert by_path["paid"].kind == FieldKind.BOOLEAN


def test_optional_and_nullable_flags():
    by_path = position_map(analyze_model(Order))
    assert by_path["note"].optional and by_path["note"].nullable
    assert by_path["scores"].optional and not by_path["scores"].nullable
    assert not by_path["id"].optional and not by_path["id"].nullable


def test_optional_nested_object_propagates_to_leaves():
    positions = analyze_model(Profile)
    assert summary(positions) == [
        ("name", FieldKind.STRING, False, False),
        ("address.street", FieldKind.STRING, True, True),
        ("address.city", FieldKind.STRING, True, True),
    ]


def test_deep_nesting_is_depth_first():
    assert [p.path for p in analyze_model(Outer)] == ["a.b.c", "a.d", "e"]


def test_alias_is_used_as_path():
    assert [p.path for p in analyze_model(Aliased)] == ["userName"]


def test_map_field_is_rejected_with_path():
    with pytest.raises(SchemaError) as exc:
        analyze_model(WithMap)
    assert exc.value.schema_path == "meta"
    assert exc.value.type_name == "map"
    assert 'at path "meta"' in str(exc.value)


def test_set_field_is_rejected():
    with pytest.raises(SchemaError) as exc:
        analyze_model(WithSet)
    assert exc.value.schema_path == "labels"
    assert exc.value.type_name == "set"


def test_recursive_model_is_rejected():
    with pytest.raises(SchemaError) as exc:
        analyze_model(TreeNode)
    assert exc.value.schema_path.startswith("children")
    assert exc.value.type_name == "recursive reference"


def test_unknown_and_union_types_fall_back_to_string():
    by_path = position_map(analyze_model(Loose))
    assert by_path["uid"].kind == FieldKind.STRING
    assert by_path["either"].kind == FieldKind.STRING
    assert by_path["choice"].kind == FieldKind.ENUM
    assert by_path["choice"].enum_values == ("a", "b")


def test_root_must_be_object():
    with pytest.raises(SchemaError) as exc:
        analyze(Primitive(FieldKind.STRING))
    assert exc.value.schema_path == ""


def test_analysis_is_cached_per_model():
    assert analyze_model(Order) is analyze_model(Order)


def test_json_schema_matches_model_analysis():
    from_json = analyze_json_schema(Order.model_json_schema())
    assert summary(from_json) == summary(analyze_model(Order))
    by_path = position_map(from_json)
    assert by_path["status"].enum_values == ("red", "green")
    assert by_path["kind"].literal_value == "order"


def test_json_schema_nullable_type_list():
    schema = {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "age": {"type": ["integer", "null"]},
        },
        "required": ["name", "age"],
    }
    assert summary(analyze_json_schema(schema)) == [
        ("name", FieldKind.STRING, False, False),
        ("age", FieldKind.NUMBER, False, True),
    ]


def test_json_schema_map_is_rejected():
    schema = {
        "type": "object",
        "properties": {"meta": {"type": "object", "additionalProperties": {"type": "string"}}},
    }
    with pytest.raises(SchemaError) as exc:
        analyze_json_schema(schema)
    assert exc.value.schema_path == "meta"
    assert exc.value.type_name == "map"


def test_json_schema_unique_items_is_set():
    schema = {"type": "object", "properties": {"ids": {"type": "array", "items": {"type": "string"}, "uniqueItems": True}}}
    with pytest.raises(SchemaError) as exc:
        analyze_json_schema(schema)
    assert exc.value.type_name == "set"


def test_json_schema_recursive_ref_is_rejected():
    with pytest.raises(SchemaError) as exc:
        analyze_json_schema(TreeNode.model_json_schema())
    assert exc.value.type_name == "recursive reference"


def test_json_schema_unresolved_ref_is_rejected():
    schema = {"type": "object", "properties": {"x": {"$ref": "#/$defs/Missing"}}}
    with pytest.raises(SchemaError) as exc:
        analyze_json_schema(schema)
    assert exc.value.schema_path == "x"
    assert exc.value.type_name == "unresolved reference"
