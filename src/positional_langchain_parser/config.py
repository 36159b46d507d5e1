# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigError

# 출력 모드
SINGLE = "single"  # 한 행 = 객체 하나
MULTI = "multi"  # 여러 행 = 객체 리스트
OUTPUT_MODES = (SINGLE, MULTI)

DEFAULT_DELIMITER = "|"
DEFAULT_SUB_DELIMITER = ";"
DEFAULT_ESCAPE_CHAR = "\\"


def validate_mode(mode: str) -> str:
    if mode not in OUTPUT_MODES:
        raise ConfigError(f"Unknown output mode: {mode!r} (expected one of {OUTPUT_MODES})")
    return mode


# ============================================================
# Config
# ============================================================
@dataclass(frozen=True)
class CodecConfig:
    """wire 포맷 구분자 설정.

    - delimiter: 필드 사이 구분자 (여러 문자 가능)
    - sub_delimiter: 한 필드 안의 배열 아이템 구분자 (여러 문자 가능)
    - escape_char: 구분자를 값으로 쓸 때 앞에 붙이는 한 글자

    세 값이 서로 같거나 하나가 다른 하나에 포함되면 파싱 결과가
    모호해지므로 생성 시점에 거부한다.
    """
    delimiter: str = DEFAULT_DELIMITER
    sub_delimiter: str = DEFAULT_SUB_DELIMITER
    escape_char: str = DEFAULT_ESCAPE_CHAR

    def __post_init__(self) -> None:
        for name in ("delimiter", "sub_delimiter", "escape_char"):
            value = getattr(self, name)
            if not isinstance(value, str) or value == "":
                raise ConfigError(f"{name} must be a non-empty string")
            if "\n" in value or "\r" in value:
                raise ConfigError(f"{name} must not contain line breaks (rows are newline-separated)")
            if value != value.strip():
                raise ConfigError(f"{name} must not start or end with whitespace (rows are trimmed), got {value!r}")
        if len(self.escape_char) != 1:
            raise ConfigError(f"escape_char must be a single character, got {self.escape_char!r}")

        pairs = (
            ("delimiter", self.delimiter, "sub_delimiter", self.sub_delimiter),
            ("delimiter", self.delimiter, "escape_char", self.escape_char),
            ("sub_delimiter", self.sub_delimiter, "escape_char", self.escape_char),
        )
        for a_name, a, b_name, b in pairs:
            if a in b or b in a:
                raise ConfigError(
                    f"{a_name} ({a!r}) and {b_name} ({b!r}) must be distinct and must not contain each other"
                )

    @staticmethod
    def from_env() -> "CodecConfig":
        return CodecConfig(
            delimiter=os.getenv("POSITIONAL_DELIMITER", DEFAULT_DELIMITER),
            sub_delimiter=os.getenv("POSITIONAL_SUB_DELIMITER", DEFAULT_SUB_DELIMITER),
            escape_char=os.getenv("POSITIONAL_ESCAPE_CHAR", DEFAULT_ESCAPE_CHAR),
        )
