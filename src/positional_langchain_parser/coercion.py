# -*- coding: utf-8 -*-
"""문자열 세그먼트 → 타입 값 변환.

의도적으로 관대하다. 잘못된 숫자는 ``nan``, 잘못된 날짜는 ``InvalidDate``,
깨진 JSON은 원문 문자열로 돌려주고, 실제 실패 판정은 뒤따르는 검증기
(pydantic)가 스키마 정보를 가지고 내린다.
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Union

from .schema_nodes import FieldKind


class _Absent:
    """빈 세그먼트("값 생략")를 나타내는 sentinel. ``None``(null)과 구분된다."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()


@dataclass(frozen=True)
class InvalidDate:
    """날짜로 해석할 수 없었던 원문. 검증 단계에서 실패한다."""
    raw: str

    def __str__(self) -> str:
        return "Invalid Date"


_INT_RE = re.compile(r"[+-]?\d+")
_TRUE_TOKENS = ("true", "1", "yes")
_FALSE_TOKENS = ("false", "0", "no")

# fromisoformat으로 안 되는 흔한 표기들
_DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y.%m.%d",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S GMT",
    "%Y%m%dT%H%M%SZ",
)


def coerce_value(
    raw: str,
    kind: FieldKind,
    sub_delimiter: str,
    item_kind: Optional[FieldKind] = None,
) -> Any:
    """세그먼트 하나를 ``kind``에 맞게 변환한다. 빈 문자열은 항상 ``ABSENT``."""
    if raw == "":
        return ABSENT

    if kind == FieldKind.NUMBER:
        return coerce_number(raw)
    if kind == FieldKind.BOOLEAN:
        return coerce_boolean(raw)
    if kind == FieldKind.DATE:
        return coerce_date(raw)
    if kind == FieldKind.ARRAY:
        return coerce_array(raw, sub_delimiter, item_kind or FieldKind.STRING)
    if kind == FieldKind.JSON:
        return coerce_json(raw)
    # string / enum / literal: 멤버십 검사는 검증기 몫
    return raw


def coerce_number(raw: str) -> Union[int, float]:
    v = raw.strip()
    low = v.lower()
    if low == "nan":
        return math.nan
    if low in ("infinity", "+infinity"):
        return math.inf
    if low == "-infinity":
        return -math.inf
    if _INT_RE.fullmatch(v):
        try:
            return int(v)
        except ValueError:
            # int 문자열 자릿수 제한 초과: float로 넘긴다
            pass
    try:
        return float(v)
    except ValueError:
        return math.nan


def coerce_boolean(raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE_TOKENS:
        return True
    if v in _FALSE_TOKENS:
        return False
    # NOTE: 알 수 없는 토큰도 비어 있지 않으면 True (기존 동작 유지)
    return bool(v)


def coerce_date(raw: str) -> Any:
    v = raw.strip()
    iso = v[:-1] + "+00:00" if v.endswith(("Z", "z")) else v
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(v, fmt)
        except ValueError:
            continue
    return InvalidDate(v)


def coerce_array(raw: str, sub_delimiter: str, item_kind: FieldKind) -> List[Any]:
    items = [item.strip() for item in raw.split(sub_delimiter)]
    return [coerce_value(item, item_kind, sub_delimiter) for item in items]


def coerce_json(raw: str) -> Any:
    v = raw.strip()
    try:
        return json.loads(v)
    except ValueError:
        return v
