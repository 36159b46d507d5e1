# -*- coding: utf-8 -*-
"""LLM 원문(positional 행)을 로그에 남길 때의 정책.

운영 환경에서는 기본적으로 원문을 남기지 않는다. 켜더라도 앞쪽 몇 행만,
지정한 컬럼은 통째로 가리고, 정규식 PII 마스킹을 거친 뒤 자른다.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .escape import join_escaped, split_with_escape

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"\b(?:\+?\d{1,3}[- ]?)?(?:\d{2,4}[- ]?)\d{3,4}[- ]?\d{4}\b")
_CARD_RE = re.compile(r"\b(?:\d[ -]*?){13,19}\b")

REDACTED = "REDACTED"
REDACTED_CELL = "***"


def _env_int(name: str, default: int) -> int:
    try:
        return max(0, int(os.getenv(name, str(default))))
    except ValueError:
        return default


@dataclass(frozen=True)
class RawLogPolicy:
    """원문 미리보기 정책.

    - ``POSITIONAL_PARSER_LOG_RAW=true``: 미리보기 활성화 (기본 비활성)
    - ``POSITIONAL_PARSER_LOG_PREVIEW_CHARS``: 최대 글자 수
    - ``POSITIONAL_PARSER_LOG_PREVIEW_ROWS``: 최대 행 수
    - ``POSITIONAL_PARSER_LOG_REDACT_PATHS``: 통째로 가릴 컬럼 경로 (쉼표 구분, 예: ``user.email,ssn``)
    """
    enabled: bool
    preview_chars: int = 200
    preview_rows: int = 5
    redact_paths: Tuple[str, ...] = ()

    @staticmethod
    def from_env() -> "RawLogPolicy":
        paths = os.getenv("POSITIONAL_PARSER_LOG_REDACT_PATHS", "")
        return RawLogPolicy(
            enabled=os.getenv("POSITIONAL_PARSER_LOG_RAW", "false").lower() == "true",
            preview_chars=_env_int("POSITIONAL_PARSER_LOG_PREVIEW_CHARS", 200),
            preview_rows=_env_int("POSITIONAL_PARSER_LOG_PREVIEW_ROWS", 5),
            redact_paths=tuple(p.strip() for p in paths.split(",") if p.strip()),
        )


def mask_pii_text(text: str) -> str:
    """정규식 기반 PII 마스킹 (이메일, 전화번호, 카드번호).

    완전한 탐지는 불가능하다. 민감한 컬럼은 ``redact_paths``로 지정하는 편이 확실하다.
    """
    text = _EMAIL_RE.sub("[REDACTED_EMAIL]", text)
    text = _PHONE_RE.sub("[REDACTED_PHONE]", text)
    text = _CARD_RE.sub("[REDACTED_CARD]", text)
    return text


def _redact_row(row: str, indexes: Sequence[int], delimiter: str, escape_char: str) -> str:
    cells = split_with_escape(row, delimiter, escape_char)
    for i in indexes:
        if i < len(cells) and cells[i]:
            cells[i] = REDACTED_CELL
    return join_escaped(cells, delimiter, escape_char)


def safe_raw_preview(
    text: str,
    policy: Optional[RawLogPolicy] = None,
    positions: Optional[Sequence[Any]] = None,
    cfg: Optional[Any] = None,
) -> str:
    """정책에 따라 로그용 미리보기 문자열을 만든다.

    ``positions``/``cfg``를 주면 ``redact_paths``에 해당하는 컬럼 값을 행 단위로 가린다.
    """
    if policy is None:
        policy = RawLogPolicy.from_env()
    if not policy.enabled:
        return REDACTED

    rows = [ln.strip() for ln in (text or "").strip().split("\n") if ln.strip()]
    shown = rows[: policy.preview_rows]

    if positions is not None and cfg is not None and policy.redact_paths:
        indexes = [p.index for p in positions if p.path in policy.redact_paths]
        if indexes:
            shown = [_redact_row(r, indexes, cfg.delimiter, cfg.escape_char) for r in shown]

    preview = mask_pii_text("\n".join(shown))[: policy.preview_chars]
    hidden = len(rows) - len(shown)
    if hidden > 0:
        preview += f"\n... (+{hidden} rows)"
    return preview
