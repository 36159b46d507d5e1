# -*- coding: utf-8 -*-
from __future__ import annotations

import enum
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Type, runtime_checkable

from pydantic import BaseModel

from .adapters import choice_map
from .coercion import ABSENT, coerce_value
from .config import SINGLE, CodecConfig, validate_mode
from .errors import ParseError, ValidationError
from .escape import join_escaped, split_with_escape
from .schema_analyzer import PositionEntry
from .schema_nodes import FieldKind
from .security import safe_raw_preview

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```[A-Za-z]*\s*(.*?)\s*```$", flags=re.DOTALL)


# ============================================================
# Validators
# ============================================================
@runtime_checkable
class RecordValidator(Protocol):
    """디코딩된 레코드 검증기 인터페이스.

    검증에 성공하면 타입이 붙은 값을 돌려주고, 실패하면 ``ValueError``
    (``pydantic.ValidationError`` 포함)를 던진다.
    """
    def validate(self, record: Dict[str, Any]) -> Any: ...


def prune_absent(value: Any) -> Any:
    """``ABSENT`` 값을 가진 키를 재귀적으로 제거한다 (기본값이 적용되도록).

    leaf가 모두 ``ABSENT``였던 중첩 객체는 키째 제거한다. 원래 비어 있던
    dict(JSON 컬럼 값)는 그대로 둔다.
    """
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            if v is ABSENT:
                continue
            pruned = prune_absent(v)
            if isinstance(v, dict) and v and not pruned:
                continue
            out[k] = pruned
        return out
    if isinstance(value, list):
        return [None if v is ABSENT else prune_absent(v) for v in value]
    return value


def restore_choices(record: Dict[str, Any], choices: Dict[str, Any]) -> Dict[str, Any]:
    """``Literal``/``Enum`` 컬럼의 문자열을 원래 값으로 바꾼다 (제자리 수정)."""
    for path, (table, is_list) in choices.items():
        parts = path.split(".")
        parent: Any = record
        for part in parts[:-1]:
            parent = parent.get(part) if isinstance(parent, dict) else None
        if not isinstance(parent, dict):
            continue
        key = parts[-1]
        value = parent.get(key)
        if is_list and isinstance(value, list):
            parent[key] = [table.get(v, v) if isinstance(v, str) else v for v in value]
        elif isinstance(value, str):
            parent[key] = table.get(value, value)
    return record


@dataclass(frozen=True)
class PydanticValidator:
    model: Type[BaseModel]

    def validate(self, record: Dict[str, Any]) -> BaseModel:
        data = prune_absent(record)
        return self.model.model_validate(restore_choices(data, choice_map(self.model)))


@dataclass(frozen=True)
class PassthroughValidator:
    """스키마 검증 없이 dict를 그대로 돌려준다 (JSON Schema만 있을 때)."""

    def validate(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return prune_absent(record)


# ============================================================
# Decode
# ============================================================
@dataclass(frozen=True)
class DecodeResult:
    records: List[Any]
    warnings: List[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.records)


def _normalize_lines(text: str) -> List[str]:
    s = (text or "").strip()
    # LLM이 코드 펜스로 감싼 경우 안쪽만 사용
    m = _CODE_FENCE_RE.match(s)
    if m:
        s = m.group(1)
    lines = [ln.strip() for ln in s.split("\n")]
    return [ln for ln in lines if ln]


def set_nested_value(obj: Dict[str, Any], path: str, value: Any) -> None:
    """``user.name`` 경로에 값을 넣으며 중간 dict를 만든다."""
    parts = path.split(".")
    cur = obj
    for part in parts[:-1]:
        nxt = cur.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[part] = nxt
        cur = nxt
    cur[parts[-1]] = value


def _parse_row(
    row: str,
    positions: Sequence[PositionEntry],
    cfg: CodecConfig,
    row_index: int,
) -> Dict[str, Any]:
    values = split_with_escape(row, cfg.delimiter, cfg.escape_char)
    if len(values) != len(positions):
        raise ParseError(
            f"Row {row_index}: Expected {len(positions)} columns but got {len(values)}",
            raw_response=row,
            expected_columns=len(positions),
            actual_columns=len(values),
            row_index=row_index,
        )

    out: Dict[str, Any] = {}
    for pos in positions:
        raw = values[pos.index]
        if pos.nullable and raw.lower() == "null":
            value: Any = None
        else:
            value = coerce_value(raw, pos.kind, cfg.sub_delimiter, pos.array_item_kind)
        set_nested_value(out, pos.path, value)
    return out


def parse_row_raw(
    row: str,
    positions: Sequence[PositionEntry],
    cfg: Optional[CodecConfig] = None,
) -> Dict[str, Any]:
    """한 행을 검증 없이 dict로 (테스트/디버깅용)."""
    return _parse_row(row, positions, cfg or CodecConfig(), 0)


def decode_rows(
    text: str,
    positions: Sequence[PositionEntry],
    cfg: Optional[CodecConfig] = None,
) -> List[Dict[str, Any]]:
    """모든 데이터 행을 검증 없이 dict 리스트로 디코딩한다.

    빈 줄은 무시한다. 데이터 행이 없거나 컬럼 수가 다른 행이 하나라도
    있으면 ``ParseError``.
    """
    cfg = cfg or CodecConfig()
    lines = _normalize_lines(text)
    if not lines:
        raise ParseError(
            "No data rows found in output",
            raw_response=text or "",
            expected_columns=len(positions),
            actual_columns=0,
        )
    return [_parse_row(line, positions, cfg, i) for i, line in enumerate(lines)]


def _validate(validator: RecordValidator, record: Dict[str, Any], row_index: int) -> Any:
    try:
        return validator.validate(record)
    except ValueError as e:
        if hasattr(e, "errors") and callable(e.errors):
            issues = list(e.errors())
        else:
            issues = [{"loc": (), "msg": str(e), "type": "value_error"}]
        raise ValidationError(
            f"Validation failed for row {row_index}: {e}",
            issues=issues,
            parsed_data=record,
            row_index=row_index,
        ) from e


def decode(
    text: str,
    positions: Sequence[PositionEntry],
    validator: RecordValidator,
    cfg: Optional[CodecConfig] = None,
    mode: str = SINGLE,
) -> DecodeResult:
    """positional 출력 → 검증된 레코드.

    - single: 첫 행만 사용. 여러 행이면 경고를 남긴다(에러 아님).
    - multi: 행마다 레코드 하나.

    한 행이라도 파싱/검증에 실패하면 전체 호출이 실패한다.
    """
    validate_mode(mode)
    cfg = cfg or CodecConfig()
    rows = decode_rows(text, positions, cfg)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("decoded %d row(s): %s", len(rows), safe_raw_preview(text or "", positions=positions, cfg=cfg))

    warnings: List[str] = []
    if mode == SINGLE:
        if len(rows) > 1:
            msg = f"Expected single object but got {len(rows)} rows. Using first row."
            logger.warning(msg)
            warnings.append(msg)
        return DecodeResult(records=[_validate(validator, rows[0], 0)], warnings=warnings)

    records = [_validate(validator, row, i) for i, row in enumerate(rows)]
    return DecodeResult(records=records, warnings=warnings)


# ============================================================
# Encode (few-shot 예시 / 비용 분석용)
# ============================================================
def _lookup(record: Any, path: str) -> Any:
    cur = record
    for part in path.split("."):
        if isinstance(cur, BaseModel):
            cur = getattr(cur, part, ABSENT)
        elif isinstance(cur, dict):
            cur = cur.get(part, ABSENT)
        else:
            return ABSENT
        if cur is None:
            return None
    return cur


def _render_scalar(value: Any) -> str:
    if value is ABSENT or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _render_cell(pos: PositionEntry, value: Any, cfg: CodecConfig) -> str:
    if value is None:
        return "null" if pos.nullable else ""
    if value is ABSENT:
        return ""
    if pos.kind == FieldKind.JSON:
        items = [v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value]
        return json.dumps(items, ensure_ascii=False, separators=(",", ":"), default=str)
    if pos.kind == FieldKind.ARRAY:
        return cfg.sub_delimiter.join(_render_scalar(v) for v in value)
    return _render_scalar(value)


def encode_row(record: Any, positions: Sequence[PositionEntry], cfg: Optional[CodecConfig] = None) -> str:
    """레코드(dict 또는 모델)를 positional 행 하나로 만든다."""
    cfg = cfg or CodecConfig()
    cells = [_render_cell(pos, _lookup(record, pos.path), cfg) for pos in positions]
    return join_escaped(cells, cfg.delimiter, cfg.escape_char)


def encode_rows(records: Sequence[Any], positions: Sequence[PositionEntry], cfg: Optional[CodecConfig] = None) -> str:
    return "\n".join(encode_row(r, positions, cfg) for r in records)
