# -*- coding: utf-8 -*-
"""
프롬프트 비용 분석 도구

JSON Structured Output vs positional 포맷의 입력(지시문)/출력 길이를 비교하여
프롬프트 사용에 따른 비용을 측정합니다.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel

from .config import SINGLE, CodecConfig
from .prompting import build_positional_format_prompt
from .row_parser import encode_rows
from .schema_analyzer import analyze_model


@dataclass
class PromptCostMetrics:
    """프롬프트 비용 메트릭."""

    # 입력 관련
    format_instructions_length: int
    format_instructions_lines: int

    # 출력 관련 (실제 데이터로 측정)
    avg_output_length: int = 0
    avg_output_lines: int = 0

    # 출력 길이 / 실제 데이터 크기
    output_to_data_ratio: float = 0.0

    @property
    def total_length(self) -> int:
        return self.format_instructions_length + self.avg_output_length


@dataclass
class FormatComparison:
    """포맷 비교 결과. 음수 퍼센트 = positional이 더 짧음."""

    json_metrics: PromptCostMetrics
    positional_metrics: PromptCostMetrics

    input_reduction_percent: float
    output_reduction_percent: float
    total_reduction_percent: float

    def print_comparison(self) -> None:
        print("=" * 80)
        print("포맷 비용 비교 분석")
        print("=" * 80)
        for label, m in (("JSON Structured Output", self.json_metrics), ("Positional Format", self.positional_metrics)):
            print(f"📊 {label}:")
            print(f"  입력 (format instructions): {m.format_instructions_length:,} chars "
                  f"({m.format_instructions_lines} lines)")
            print(f"  출력 (avg): {m.avg_output_length:,} chars ({m.avg_output_lines} lines)")
            print(f"  출력/데이터 비율: {m.output_to_data_ratio:.2f}x")
            print(f"  총합: {m.total_length:,} chars")
            print()

        print("💰 비용 절감 분석:")
        print(f"  입력 길이 변화: {self.input_reduction_percent:+.1f}%")
        print(f"  출력 길이 변화: {self.output_reduction_percent:+.1f}%")
        print(f"  전체 변화: {self.total_reduction_percent:+.1f}%")
        print("=" * 80)


def _json_instructions(model: Type[BaseModel]) -> str:
    schema_str = json.dumps(model.model_json_schema(), indent=2, ensure_ascii=False)
    return f"""Please respond with a JSON object that matches this schema:

{schema_str}

Important:
- Output ONLY valid JSON
- Follow the exact schema structure
- Include all required fields
"""


def _percent(new: float, base: float) -> float:
    return (new - base) / base * 100 if base else 0.0


def _as_dicts(data: Union[Any, Sequence[Any]]) -> List[Any]:
    items = data if isinstance(data, list) else [data]
    return [d.model_dump(mode="json") if isinstance(d, BaseModel) else d for d in items]


class CostAnalyzer:
    """프롬프트 비용 분석기."""

    @staticmethod
    def measure_json_instructions(model: Type[BaseModel]) -> PromptCostMetrics:
        instructions = _json_instructions(model)
        return PromptCostMetrics(
            format_instructions_length=len(instructions),
            format_instructions_lines=len(instructions.splitlines()),
        )

    @staticmethod
    def measure_positional_instructions(
        model: Type[BaseModel],
        cfg: Optional[CodecConfig] = None,
        mode: str = SINGLE,
    ) -> PromptCostMetrics:
        instructions = build_positional_format_prompt(model, cfg, mode=mode)
        return PromptCostMetrics(
            format_instructions_length=len(instructions),
            format_instructions_lines=len(instructions.splitlines()),
        )

    @staticmethod
    def measure_output_length(
        data: Any,
        format_type: str = "json",
        model: Optional[Type[BaseModel]] = None,
        cfg: Optional[CodecConfig] = None,
    ) -> Tuple[int, int]:
        """실제 데이터의 출력 길이를 측정합니다.

        Args:
            data: dict / BaseModel 또는 그 리스트
            format_type: "json" 또는 "positional" (positional은 ``model`` 필요)

        Returns:
            tuple[길이, 라인수]
        """
        if format_type == "positional":
            if model is None:
                raise ValueError("model is required to measure positional output")
            items = data if isinstance(data, list) else [data]
            output = encode_rows(items, analyze_model(model), cfg)
        elif format_type == "json":
            dicts = _as_dicts(data)
            payload = dicts if isinstance(data, list) else dicts[0]
            output = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
        else:
            output = str(data)
        return len(output), len(output.splitlines())

    @staticmethod
    def compare_formats(
        model: Type[BaseModel],
        sample_data: Optional[List[Any]] = None,
        cfg: Optional[CodecConfig] = None,
    ) -> FormatComparison:
        """JSON과 positional 포맷의 비용을 비교합니다.

        Args:
            model: Pydantic 모델
            sample_data: 비교용 샘플 레코드 리스트 (없으면 출력 비교 생략)
        """
        json_metrics = CostAnalyzer.measure_json_instructions(model)
        pos_metrics = CostAnalyzer.measure_positional_instructions(model, cfg)

        if sample_data:
            sizes, j_len, j_lines, p_len, p_lines = [], [], [], [], []
            for d in sample_data:
                plain = _as_dicts(d)[0]
                sizes.append(len(json.dumps(plain, ensure_ascii=False, separators=(",", ":"), default=str)))
                a, b = CostAnalyzer.measure_output_length(d, "json")
                j_len.append(a)
                j_lines.append(b)
                a, b = CostAnalyzer.measure_output_length(d, "positional", model, cfg)
                p_len.append(a)
                p_lines.append(b)

            n = len(sample_data)
            avg_size = sum(sizes) / n
            json_metrics.avg_output_length = int(sum(j_len) / n)
            json_metrics.avg_output_lines = int(sum(j_lines) / n)
            json_metrics.output_to_data_ratio = json_metrics.avg_output_length / avg_size if avg_size else 0.0
            pos_metrics.avg_output_length = int(sum(p_len) / n)
            pos_metrics.avg_output_lines = int(sum(p_lines) / n)
            pos_metrics.output_to_data_ratio = pos_metrics.avg_output_length / avg_size if avg_size else 0.0

        return FormatComparison(
            json_metrics=json_metrics,
            positional_metrics=pos_metrics,
            input_reduction_percent=_percent(
                pos_metrics.format_instructions_length, json_metrics.format_instructions_length
            ),
            output_reduction_percent=_percent(pos_metrics.avg_output_length, json_metrics.avg_output_length),
            total_reduction_percent=_percent(pos_metrics.total_length, json_metrics.total_length),
        )

    @staticmethod
    def analyze_actual_usage(
        model: Type[BaseModel],
        positional_raw_output: str,
        parsed_result: Union[BaseModel, List[BaseModel]],
        cfg: Optional[CodecConfig] = None,
        mode: str = SINGLE,
    ) -> Dict[str, Any]:
        """실제 LLM 출력(positional)과 같은 데이터를 JSON으로 받았을 때를 비교합니다.

        Example:
            >>> analysis = CostAnalyzer.analyze_actual_usage(User, raw, result)
            >>> analysis["chars_saved"]
        """
        pos_input = len(build_positional_format_prompt(model, cfg, mode=mode))
        json_input = len(_json_instructions(model))

        raw = positional_raw_output.strip()
        pos_output = len(raw)
        json_len, json_lines = CostAnalyzer.measure_output_length(parsed_result, "json")

        pos_total = pos_input + pos_output
        json_total = json_input + json_len
        return {
            "positional_input_chars": pos_input,
            "json_input_chars": json_input,
            "positional_output_chars": pos_output,
            "positional_output_lines": len(raw.splitlines()),
            "json_output_chars": json_len,
            "json_output_lines": json_lines,
            "positional_total_chars": pos_total,
            "json_total_chars": json_total,
            "chars_saved": json_total - pos_total,
            "total_reduction_percent": (json_total - pos_total) / json_total * 100 if json_total else 0.0,
        }

    @staticmethod
    def estimate_cost_savings(
        comparison: FormatComparison,
        requests_per_day: int = 1000,
        cost_per_million_chars: float = 1.0,  # 예: $1 per 1M chars
    ) -> Dict[str, Any]:
        per_request = comparison.json_metrics.total_length - comparison.positional_metrics.total_length
        per_day = per_request * requests_per_day
        return {
            "chars_saved_per_request": per_request,
            "chars_saved_per_day": per_day,
            "chars_saved_per_month": per_day * 30,
            "chars_saved_per_year": per_day * 365,
            "cost_saved_per_day_usd": per_day / 1_000_000 * cost_per_million_chars,
            "cost_saved_per_month_usd": per_day * 30 / 1_000_000 * cost_per_million_chars,
            "cost_saved_per_year_usd": per_day * 365 / 1_000_000 * cost_per_million_chars,
        }
