# -*- coding: utf-8 -*-
"""분석기가 다루는 정규화된 스키마 노드.

스키마 출처(pydantic 모델 어노테이션, JSON Schema dict)마다 어댑터가 한 번씩
이 형태로 변환하고, 분석기는 이 형태만 본다.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union


class FieldKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ENUM = "enum"
    LITERAL = "literal"
    ARRAY = "array"
    JSON = "json"  # 객체 배열: 한 필드 안에 인라인 JSON으로 넣는다

    def __str__(self) -> str:
        return self.value


PRIMITIVE_KINDS = (FieldKind.STRING, FieldKind.NUMBER, FieldKind.BOOLEAN, FieldKind.DATE)


# ============================================================
# Nodes
# ============================================================
@dataclass(frozen=True)
class Primitive:
    kind: FieldKind


@dataclass(frozen=True)
class EnumNode:
    values: Tuple[str, ...]


@dataclass(frozen=True)
class LiteralNode:
    value: Any


@dataclass(frozen=True)
class OptionalNode:
    inner: "SchemaNode"


@dataclass(frozen=True)
class NullableNode:
    inner: "SchemaNode"


@dataclass(frozen=True)
class ArrayNode:
    item: "SchemaNode"


@dataclass(frozen=True)
class ObjectNode:
    fields: Tuple[Tuple[str, "SchemaNode"], ...]


@dataclass(frozen=True)
class Unsupported:
    """map/set/callable/재귀 참조처럼 고정 컬럼으로 펼 수 없는 노드."""
    type_name: str


@dataclass(frozen=True)
class Unknown:
    """어댑터가 모르는 타입. 스키마 라이브러리 버전 차이를 견디기 위해 string으로 분석된다."""
    type_name: str


SchemaNode = Union[
    Primitive,
    EnumNode,
    LiteralNode,
    OptionalNode,
    NullableNode,
    ArrayNode,
    ObjectNode,
    Unsupported,
    Unknown,
]
