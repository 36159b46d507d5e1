# -*- coding: utf-8 -*-
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel

from .config import MULTI, SINGLE, CodecConfig, validate_mode
from .errors import ConfigError, ProviderError
from .prompting import PromptOptions, build_user_prompt, render_grammar
from .providers import ProviderRegistry, TokenUsage
from .row_parser import PydanticValidator, decode
from .schema_analyzer import PositionEntry, analyze_model, position_map
from .security import safe_raw_preview

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    data: Any  # single: 모델 인스턴스, multi: 모델 인스턴스 리스트
    provider: str
    raw_response: str
    warnings: List[str] = field(default_factory=list)
    row_count: Optional[int] = None
    usage: Optional[TokenUsage] = None


class PositionalCompleter:
    """스키마 분석 → 지시문 생성 → LLM 호출 → 디코딩/검증을 한 번에 처리한다.

    provider 호출이 ``ProviderError``로 실패했을 때만 fallback 목록을 순서대로
    시도한다. 파싱/검증 에러는 다른 provider로 재시도하지 않고 바로 전파된다.

    Example:
        >>> registry = ProviderRegistry.from_env()
        >>> completer = PositionalCompleter(registry, default_provider="openai")
        >>> result = completer.complete_sync("Extract users", User, mode="multi")
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        default_provider: str,
        fallback_providers: Sequence[str] = (),
        codec: Optional[CodecConfig] = None,
        debug: bool = False,
    ):
        if not registry.is_configured(default_provider):
            raise ConfigError(f'Default provider "{default_provider}" is not configured in providers')
        self.registry = registry
        self.default_provider = default_provider
        self.fallback_providers = tuple(fallback_providers)
        self.codec = codec or CodecConfig()
        self.debug = debug

    def _log_enabled(self) -> bool:
        return logger.isEnabledFor(logging.INFO if self.debug else logging.DEBUG)

    def _log(self, msg: str, *args: Any) -> None:
        if self.debug:
            logger.info(msg, *args)
        else:
            logger.debug(msg, *args)

    async def complete(
        self,
        prompt: str,
        model: Type[BaseModel],
        mode: str = SINGLE,
        *,
        input_data: Any = None,
        input_format: str = "auto",
        provider: Optional[str] = None,
        temperature: Optional[float] = 0.0,
        max_tokens: Optional[int] = 4096,
        system_prompt: Optional[str] = None,
        max_rows: Optional[int] = None,
    ) -> CompletionResult:
        first = provider or self.default_provider
        order = [first] + [p for p in self.fallback_providers if p != first]

        last_error: Optional[ProviderError] = None
        for name in order:
            if not self.registry.is_configured(name):
                self._log("Skipping provider %s: not configured", name)
                continue
            try:
                return await self.complete_with_provider(
                    name,
                    prompt,
                    model,
                    mode,
                    input_data=input_data,
                    input_format=input_format,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    system_prompt=system_prompt,
                    max_rows=max_rows,
                )
            except ProviderError as e:
                logger.warning("Provider %s failed: %s", name, e)
                last_error = e

        if last_error is not None:
            raise last_error
        raise ProviderError("All providers failed", provider=first)

    async def complete_with_provider(
        self,
        provider: str,
        prompt: str,
        model: Type[BaseModel],
        mode: str = SINGLE,
        *,
        input_data: Any = None,
        input_format: str = "auto",
        temperature: Optional[float] = 0.0,
        max_tokens: Optional[int] = 4096,
        system_prompt: Optional[str] = None,
        max_rows: Optional[int] = None,
    ) -> CompletionResult:
        """fallback 없이 지정한 provider 하나로 처리한다."""
        validate_mode(mode)
        producer = self.registry.get(provider)

        positions = analyze_model(model)
        self._log("Schema positions: %s", [f"{p.index}:{p.path}" for p in positions])

        options = PromptOptions(mode=mode, max_rows=max_rows, preamble=system_prompt)
        system_text = render_grammar(positions, self.codec, options)
        user_text = build_user_prompt(prompt, input_data, input_format)
        self._log("System prompt:\n%s", system_text)
        if self._log_enabled():
            self._log("User prompt: %s", safe_raw_preview(user_text))

        response = await producer.complete(
            system_text,
            user_text,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if self._log_enabled():
            self._log("Raw response: %s", safe_raw_preview(response.content, positions=positions, cfg=self.codec))

        result = decode(response.content, positions, PydanticValidator(model), self.codec, mode)
        data: Any = result.records if mode == MULTI else result.records[0]

        return CompletionResult(
            data=data,
            provider=provider,
            raw_response=response.content,
            warnings=list(result.warnings),
            row_count=result.row_count if mode == MULTI else None,
            usage=response.usage,
        )

    def complete_sync(self, prompt: str, model: Type[BaseModel], mode: str = SINGLE, **kwargs: Any) -> CompletionResult:
        """이벤트 루프 밖에서 쓰는 동기 버전."""
        return asyncio.run(self.complete(prompt, model, mode, **kwargs))

    def get_schema_positions(self, model: Type[BaseModel]) -> Dict[str, PositionEntry]:
        return position_map(analyze_model(model))
