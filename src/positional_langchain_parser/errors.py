# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, List, Optional


# ============================================================
# Errors
# ============================================================
class PositionalParserError(ValueError):
    """positional 파서의 모든 에러의 베이스."""
    pass


class ConfigError(PositionalParserError):
    """구분자/이스케이프 설정이 잘못되었거나 provider 설정이 누락된 경우."""
    pass


class SchemaError(PositionalParserError):
    """positional 포맷으로 표현할 수 없는 스키마 구조.

    분석 단계에서만 발생하며 항상 특정 경로를 가리킨다.
    """

    def __init__(self, message: str, schema_path: str, type_name: Optional[str] = None):
        super().__init__(message)
        self.schema_path = schema_path
        self.type_name = type_name


class ParseError(PositionalParserError):
    """행/컬럼 수 불일치, 데이터 행 없음 등 positional 출력 파싱 실패."""

    def __init__(
        self,
        message: str,
        raw_response: str,
        expected_columns: int,
        actual_columns: int,
        row_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.raw_response = raw_response
        self.expected_columns = expected_columns
        self.actual_columns = actual_columns
        self.row_index = row_index


class ValidationError(PositionalParserError):
    """디코딩된 레코드가 검증기(validator)를 통과하지 못한 경우.

    ``issues``는 검증기가 돌려준 이슈 목록(pydantic이면 ``errors()`` 결과),
    ``parsed_data``는 검증 전 레코드다.
    """

    def __init__(
        self,
        message: str,
        issues: List[Dict[str, Any]],
        parsed_data: Any,
        row_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.issues = issues
        self.parsed_data = parsed_data
        self.row_index = row_index


class ProviderError(PositionalParserError):
    """외부 LLM 호출 자체의 실패(인증, rate limit, 타임아웃, SDK 미설치 등).

    orchestrator가 fallback 대상으로 삼는 유일한 에러.
    """

    def __init__(self, message: str, provider: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
