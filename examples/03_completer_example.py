from __future__ import annotations

import json
import logging
import os
from typing import List

from pydantic import BaseModel, Field

from positional_langchain_parser import CostAnalyzer, PositionalCompleter, ProviderRegistry


class CharacterFeatures(BaseModel):
    """캐릭터의 이름과 상세 특징을 추출하는 모델."""
    name: str = Field(..., description="캐릭터의 이름")
    personality: str = Field(default="", description="성격 특징")
    appearance: List[str] = Field(default_factory=list, description="외형 특징")


def main() -> None:
    """OPENAI_API_KEY / ANTHROPIC_API_KEY 중 설정된 provider로 추출합니다."""
    logging.basicConfig(level=logging.INFO)

    registry = ProviderRegistry.from_env()
    if not registry.names():
        raise SystemExit("OPENAI_API_KEY 또는 ANTHROPIC_API_KEY를 설정하세요.")

    default = os.getenv("POSITIONAL_DEFAULT_PROVIDER", registry.names()[0])
    completer = PositionalCompleter(
        registry,
        default_provider=default,
        fallback_providers=[n for n in registry.names() if n != default],
        debug=True,
    )

    document = """
    해리 포터는 검은 머리에 초록색 눈을 가진 소년이다.
    그는 용감하고 정의로운 성격을 가지고 있다.
    헤르미온느 그레인저는 갈색 곱슬머리에 똑똑하고 원칙을 중시한다.
    """

    result = completer.complete_sync(
        "문서에 등장하는 캐릭터를 모두 추출하세요.",
        CharacterFeatures,
        mode="multi",
        input_data=document,
        max_rows=10,
    )

    print("=" * 80)
    print(f"1. LLM 원본 출력 (provider={result.provider}):")
    print("=" * 80)
    print(result.raw_response)
    print()

    print("=" * 80)
    print("2. JSON으로 변환된 결과:")
    print("=" * 80)
    print(json.dumps([c.model_dump() for c in result.data], ensure_ascii=False, indent=2))
    for w in result.warnings:
        print(f"⚠️ {w}")
    if result.usage:
        print(f"tokens: {result.usage.total_tokens}")

    analysis = CostAnalyzer.analyze_actual_usage(
        CharacterFeatures, result.raw_response, result.data, mode="multi"
    )
    print()
    print(f"💰 JSON 대비 절약: {analysis['chars_saved']:,} chars ({analysis['total_reduction_percent']:.1f}%)")


if __name__ == "__main__":
    main()
