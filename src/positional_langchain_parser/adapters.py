# -*- coding: utf-8 -*-
"""스키마 출처별 어댑터: pydantic 모델 / JSON Schema → 정규화 노드.

어댑터는 변환만 한다. 지원하지 않는 구조를 만나도 예외를 던지지 않고
``Unsupported`` 노드를 남기며, 경로를 붙여 ``SchemaError``를 던지는 것은
분석기의 몫이다.
"""
from __future__ import annotations

import collections.abc
import decimal
import enum
import functools
import types
import typing
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from .schema_nodes import (
    ArrayNode,
    EnumNode,
    FieldKind,
    LiteralNode,
    NullableNode,
    ObjectNode,
    OptionalNode,
    Primitive,
    SchemaNode,
    Unknown,
    Unsupported,
)

_NONE_TYPE = type(None)
_UNION_TYPES: Tuple[Any, ...] = (typing.Union,)
if getattr(types, "UnionType", None) is not None:  # X | Y (3.10+)
    _UNION_TYPES = _UNION_TYPES + (types.UnionType,)

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
)
_SET_ORIGINS = (set, frozenset, collections.abc.Set, collections.abc.MutableSet)
_MAP_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def from_model(model: Type[BaseModel]) -> ObjectNode:
    """pydantic v2 모델 클래스를 ``ObjectNode``로 변환한다.

    기본값이 있는(필수가 아닌) 필드는 ``OptionalNode``로 감싼다.
    """
    return _ModelAdapter().object_node(model)


def from_json_schema(schema: Dict[str, Any]) -> SchemaNode:
    """JSON Schema dict(``model_json_schema()`` 결과 등)를 변환한다."""
    return _JsonSchemaAdapter(schema).convert(schema)


# ============================================================
# pydantic model_fields / type annotations
# ============================================================
class _ModelAdapter:
    def __init__(self) -> None:
        self._stack: List[type] = []

    def object_node(self, model: Type[BaseModel]) -> SchemaNode:
        if model in self._stack:
            return Unsupported("recursive reference")
        self._stack.append(model)
        try:
            fields = []
            for name, info in model.model_fields.items():
                node = self.convert(info.annotation)
                if not info.is_required():
                    node = OptionalNode(node)
                fields.append((info.alias or name, node))
            return ObjectNode(tuple(fields))
        finally:
            self._stack.pop()

    def convert(self, tp: Any) -> SchemaNode:
        if tp is Any or tp is object:
            return Primitive(FieldKind.STRING)
        if isinstance(tp, (str, typing.ForwardRef)):
            return Unsupported("unresolved reference")

        origin = typing.get_origin(tp)
        args = typing.get_args(tp)

        if origin is typing.Annotated:
            return self.convert(args[0])
        if origin in _UNION_TYPES:
            return self._union(args)
        if origin is typing.Literal:
            if len(args) == 1:
                return LiteralNode(args[0])
            return EnumNode(tuple(str(a) for a in args))
        if origin is not None:
            return self._generic(tp, origin, args)

        if not isinstance(tp, type):
            return Unknown(repr(tp))
        if issubclass(tp, BaseModel):
            return self.object_node(tp)
        if issubclass(tp, enum.Enum):
            return EnumNode(tuple(str(m.value) for m in tp))
        if tp is bool:
            return Primitive(FieldKind.BOOLEAN)
        if issubclass(tp, str):
            return Primitive(FieldKind.STRING)
        if issubclass(tp, (int, float, decimal.Decimal)):
            return Primitive(FieldKind.NUMBER)
        if issubclass(tp, (datetime, date)):
            return Primitive(FieldKind.DATE)
        if issubclass(tp, (set, frozenset)):
            return Unsupported("set")
        if issubclass(tp, dict):
            return Unsupported("map")
        if issubclass(tp, (list, tuple)):
            return ArrayNode(Primitive(FieldKind.STRING))
        return Unknown(tp.__name__)

    def _union(self, args: Tuple[Any, ...]) -> SchemaNode:
        members = [a for a in args if a is not _NONE_TYPE]
        if len(members) == 1:
            inner = self.convert(members[0])
        else:
            # 여러 타입 유니온은 문자열로 받고 검증기에 맡긴다
            inner = Primitive(FieldKind.STRING)
        if len(members) != len(args):
            return NullableNode(inner)
        return inner

    def _generic(self, tp: Any, origin: Any, args: Tuple[Any, ...]) -> SchemaNode:
        if origin in _MAP_ORIGINS:
            return Unsupported("map")
        if origin in _SET_ORIGINS:
            return Unsupported("set")
        if origin is collections.abc.Callable:
            return Unsupported("callable")
        if origin in _SEQUENCE_ORIGINS:
            item = args[0] if args else Any
            return ArrayNode(self.convert(item))
        return Unknown(repr(tp))


# ============================================================
# JSON Schema ($ref / $defs / anyOf)
# ============================================================
class _JsonSchemaAdapter:
    def __init__(self, root: Dict[str, Any]) -> None:
        self._defs: Dict[str, Any] = {}
        if isinstance(root, dict):
            if isinstance(root.get("$defs"), dict):
                self._defs.update(root["$defs"])
            if isinstance(root.get("definitions"), dict):
                self._defs.update(root["definitions"])

    def _resolve_ref(self, ref: str) -> Optional[Dict[str, Any]]:
        # Supported refs: #/$defs/Name or #/definitions/Name
        if not ref.startswith("#/"):
            return None
        parts = ref[2:].split("/")
        if len(parts) == 2 and parts[0] in ("$defs", "definitions"):
            target = self._defs.get(parts[1])
            if isinstance(target, dict):
                return target
        return None

    def convert(self, schema: Any, active_refs: Tuple[str, ...] = ()) -> SchemaNode:
        if not isinstance(schema, dict):
            return Unknown(type(schema).__name__)

        if "$ref" in schema:
            ref = schema["$ref"]
            if ref in active_refs:
                return Unsupported("recursive reference")
            target = self._resolve_ref(ref)
            if target is None:
                return Unsupported("unresolved reference")
            merged = dict(target)
            merged.update({k: v for k, v in schema.items() if k != "$ref"})
            return self.convert(merged, active_refs + (ref,))

        for key in ("anyOf", "oneOf"):
            if isinstance(schema.get(key), list):
                return self._union(schema[key], active_refs)
        if isinstance(schema.get("allOf"), list) and len(schema["allOf"]) == 1:
            return self.convert(schema["allOf"][0], active_refs)

        if "const" in schema:
            return LiteralNode(schema["const"])
        if isinstance(schema.get("enum"), list):
            return EnumNode(tuple(str(v) for v in schema["enum"]))

        t = schema.get("type")
        if isinstance(t, list):
            non_null = [x for x in t if x != "null"]
            inner = dict(schema, type=non_null[0]) if len(non_null) == 1 else {}
            node = self.convert(inner, active_refs) if inner else Primitive(FieldKind.STRING)
            return NullableNode(node) if "null" in t else node

        if t == "object" or "properties" in schema:
            return self._object(schema, active_refs)
        if t == "array":
            if schema.get("uniqueItems"):
                return Unsupported("set")
            return ArrayNode(self.convert(schema.get("items") or {}, active_refs))
        if t == "string":
            if schema.get("format") in ("date", "date-time"):
                return Primitive(FieldKind.DATE)
            return Primitive(FieldKind.STRING)
        if t in ("integer", "number"):
            return Primitive(FieldKind.NUMBER)
        if t == "boolean":
            return Primitive(FieldKind.BOOLEAN)
        if t is None and not schema:
            return Primitive(FieldKind.STRING)
        return Unknown(str(t))

    def _union(self, members: List[Any], active_refs: Tuple[str, ...]) -> SchemaNode:
        non_null = [s for s in members if not (isinstance(s, dict) and s.get("type") == "null")]
        if len(non_null) == 1:
            inner = self.convert(non_null[0], active_refs)
        else:
            inner = Primitive(FieldKind.STRING)
        if len(non_null) != len(members):
            return NullableNode(inner)
        return inner

    def _object(self, schema: Dict[str, Any], active_refs: Tuple[str, ...]) -> SchemaNode:
        props = schema.get("properties") or {}
        if not props:
            if schema.get("additionalProperties") is False:
                return ObjectNode(())
            return Unsupported("map")
        required = set(schema.get("required") or [])
        fields = []
        for name, sub in props.items():
            node = self.convert(sub, active_refs)
            if name not in required:
                node = OptionalNode(node)
            fields.append((name, node))
        return ObjectNode(tuple(fields))


# ============================================================
# 문자열 → 원래 선택지 값 (Literal / Enum)
# ============================================================
ChoiceTable = Dict[str, Any]


@functools.lru_cache(maxsize=None)
def choice_map(model: Type[BaseModel]) -> Dict[str, Tuple[ChoiceTable, bool]]:
    """경로 → (원문 문자열 → 원래 값, 배열 컬럼 여부).

    positional 세그먼트는 항상 문자열이라 ``Literal[1, 2]``, ``Literal[True]``,
    값이 문자열이 아닌 ``Enum`` 컬럼은 검증 전에 원래 값으로 되돌려야 한다.
    문자열 값은 그대로 맞으므로 표에 넣지 않는다.
    """
    out: Dict[str, Tuple[ChoiceTable, bool]] = {}
    _collect_choices(model, "", out, ())
    return out


def _strip_annotation(tp: Any) -> Any:
    while True:
        origin = typing.get_origin(tp)
        if origin is typing.Annotated:
            tp = typing.get_args(tp)[0]
        elif origin in _UNION_TYPES:
            members = [a for a in typing.get_args(tp) if a is not _NONE_TYPE]
            if len(members) != 1:
                return tp
            tp = members[0]
        else:
            return tp


def _choices(tp: Any) -> Optional[ChoiceTable]:
    if typing.get_origin(tp) is typing.Literal:
        values: Tuple[Any, ...] = typing.get_args(tp)
    elif isinstance(tp, type) and issubclass(tp, enum.Enum):
        values = tuple(tp)
    else:
        return None
    table: ChoiceTable = {}
    for v in values:
        raw = v.value if isinstance(v, enum.Enum) else v
        if isinstance(raw, str):
            continue
        table[str(raw)] = v
        if isinstance(raw, bool):
            table[str(raw).lower()] = v
    return table or None


def _collect_choices(
    model: Type[BaseModel],
    prefix: str,
    out: Dict[str, Tuple[ChoiceTable, bool]],
    stack: Tuple[type, ...],
) -> None:
    if model in stack:
        return
    for name, info in model.model_fields.items():
        path = f"{prefix}{info.alias or name}"
        tp = _strip_annotation(info.annotation)
        table = _choices(tp)
        if table:
            out[path] = (table, False)
            continue
        origin = typing.get_origin(tp)
        if origin in _SEQUENCE_ORIGINS:
            args = typing.get_args(tp)
            item_table = _choices(_strip_annotation(args[0])) if args else None
            if item_table:
                out[path] = (item_table, True)
        elif isinstance(tp, type) and issubclass(tp, BaseModel):
            _collect_choices(tp, path + ".", out, stack + (model,))
