# -*- coding: utf-8 -*-
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from .adapters import from_json_schema, from_model
from .errors import SchemaError
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

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionEntry:
    """wire 포맷의 컬럼 하나(스키마의 leaf 하나)."""
    path: str  # "user.name"
    index: int  # 0부터 시작하는 컬럼 번호
    kind: FieldKind
    optional: bool = False
    nullable: bool = False
    enum_values: Optional[Tuple[str, ...]] = None
    literal_value: Any = None
    array_item_kind: Optional[FieldKind] = None


PositionList = Tuple[PositionEntry, ...]


# ============================================================
# Analyzer
# ============================================================
class _Analyzer:
    def __init__(self) -> None:
        self.positions: List[PositionEntry] = []

    def _push(self, path: str, kind: FieldKind, optional: bool, nullable: bool, **extra: Any) -> None:
        self.positions.append(
            PositionEntry(
                path=path,
                index=len(self.positions),
                kind=kind,
                optional=optional,
                nullable=nullable,
                **extra,
            )
        )

    def walk(self, node: SchemaNode, path: str, optional: bool, nullable: bool) -> None:
        if isinstance(node, OptionalNode):
            self.walk(node.inner, path, True, nullable)
        elif isinstance(node, NullableNode):
            self.walk(node.inner, path, optional, True)
        elif isinstance(node, ObjectNode):
            for name, child in node.fields:
                self.walk(child, f"{path}.{name}" if path else name, optional, nullable)
        elif isinstance(node, Primitive):
            self._push(path, node.kind, optional, nullable)
        elif isinstance(node, EnumNode):
            self._push(path, FieldKind.ENUM, optional, nullable, enum_values=node.values)
        elif isinstance(node, LiteralNode):
            self._push(path, FieldKind.LITERAL, optional, nullable, literal_value=node.value)
        elif isinstance(node, ArrayNode):
            item = _strip_wrappers(node.item)
            if isinstance(item, ObjectNode):
                self._push(path, FieldKind.JSON, optional, nullable)
            elif isinstance(item, Unsupported):
                self.walk(item, f"{path}[]", optional, nullable)
            else:
                self._push(path, FieldKind.ARRAY, optional, nullable, array_item_kind=_item_kind(item))
        elif isinstance(node, Unsupported):
            raise SchemaError(
                f'Unsupported schema type "{node.type_name}" at path "{path}". '
                f"Use a supported type or flatten your schema.",
                schema_path=path,
                type_name=node.type_name,
            )
        else:
            if isinstance(node, Unknown):
                logger.debug("unknown schema type %r at %r, treating as string", node.type_name, path)
            self._push(path, FieldKind.STRING, optional, nullable)


def _strip_wrappers(node: SchemaNode) -> SchemaNode:
    while isinstance(node, (OptionalNode, NullableNode)):
        node = node.inner
    return node


def _item_kind(node: SchemaNode) -> FieldKind:
    if isinstance(node, Primitive):
        return node.kind
    if isinstance(node, EnumNode):
        return FieldKind.ENUM
    if isinstance(node, LiteralNode):
        return FieldKind.LITERAL
    # 배열의 배열 등은 문자열 아이템으로 받는다
    return FieldKind.STRING


def analyze(root: SchemaNode) -> PositionList:
    """정규화된 스키마를 depth-first로 펼쳐 컬럼 목록을 만든다.

    - Optional/Nullable 래퍼는 하위 트리 전체에 플래그만 전달하고 컬럼을 차지하지 않는다.
    - Object는 필드를 선언 순서대로 ``a.b`` 경로로 펼치며 자신은 컬럼이 아니다.
    - Array는 컬럼 하나: 아이템이 Object면 ``json``, 아니면 ``array``.
    - 지원하지 않는 노드가 하나라도 있으면 ``SchemaError`` (부분 결과 없음).
    """
    root = _strip_wrappers(root)
    if not isinstance(root, ObjectNode):
        type_name = getattr(root, "type_name", type(root).__name__)
        raise SchemaError("Schema root must be an object with fields", schema_path="", type_name=type_name)

    analyzer = _Analyzer()
    analyzer.walk(root, "", False, False)
    return tuple(analyzer.positions)


@functools.lru_cache(maxsize=None)
def analyze_model(model: Type[BaseModel]) -> PositionList:
    """pydantic 모델의 컬럼 목록. 모델 클래스별로 한 번만 계산된다."""
    positions = analyze(from_model(model))
    logger.debug("analyzed %s: %d columns", model.__name__, len(positions))
    return positions


def analyze_json_schema(schema: Dict[str, Any]) -> PositionList:
    return analyze(from_json_schema(schema))


def position_map(positions: PositionList) -> Dict[str, PositionEntry]:
    """디버깅용: 경로 → 컬럼 정보."""
    return {p.path: p for p in positions}
