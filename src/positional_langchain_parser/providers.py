# -*- coding: utf-8 -*-
"""외부 텍스트 생성기(LLM) 경계.

provider는 LangChain chat model을 감싼 ``TextProducer``다. 호출 중 발생한
모든 예외는 ``ProviderError``로 바뀌며, orchestrator는 이 에러만 fallback한다.
"""
from __future__ import annotations

import functools
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from .errors import ConfigError, ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int
    output_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ProviderResponse:
    content: str
    usage: Optional[TokenUsage] = None


@runtime_checkable
class TextProducer(Protocol):
    """텍스트 생성기 인터페이스."""
    name: str

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ProviderResponse: ...


def _status_code(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # content block 리스트 (anthropic 등)
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ChatModelProducer:
    """LangChain ``BaseChatModel``을 ``TextProducer``로 감싼다."""

    def __init__(self, name: str, chat_model: BaseChatModel, max_tokens_param: str = "max_tokens"):
        self.name = name
        self.chat_model = chat_model
        self.max_tokens_param = max_tokens_param

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ProviderResponse:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        kwargs: Dict[str, Any] = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs[self.max_tokens_param] = max_tokens
        runnable = self.chat_model.bind(**kwargs) if kwargs else self.chat_model

        try:
            message = await runnable.ainvoke(messages)
        except Exception as e:
            raise ProviderError(
                f"{self.name} API error: {e}",
                provider=self.name,
                status_code=_status_code(e),
            ) from e

        usage = None
        meta = getattr(message, "usage_metadata", None)
        if meta:
            usage = TokenUsage(
                input_tokens=meta.get("input_tokens", 0),
                output_tokens=meta.get("output_tokens", 0),
                total_tokens=meta.get("total_tokens", 0),
            )
        return ProviderResponse(content=_message_text(message.content), usage=usage)


# ============================================================
# Built-in provider factories (LangChain integrations)
# ============================================================
@dataclass(frozen=True)
class ProviderSettings:
    api_key: Optional[str] = None
    model: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)


def _missing_sdk(provider: str, package: str) -> ProviderError:
    return ProviderError(
        f"Failed to import {package}. Install: pip install {package}",
        provider=provider,
    )


def create_openai_producer(settings: ProviderSettings) -> TextProducer:
    try:
        from langchain_openai import ChatOpenAI
    except ImportError as e:
        raise _missing_sdk("openai", "langchain-openai") from e
    chat = ChatOpenAI(model=settings.model or "gpt-4o", api_key=settings.api_key, **settings.extra)
    return ChatModelProducer("openai", chat)


def create_anthropic_producer(settings: ProviderSettings) -> TextProducer:
    try:
        from langchain_anthropic import ChatAnthropic
    except ImportError as e:
        raise _missing_sdk("anthropic", "langchain-anthropic") from e
    chat = ChatAnthropic(
        model=settings.model or "claude-sonnet-4-5-20250929",
        api_key=settings.api_key,
        **settings.extra,
    )
    return ChatModelProducer("anthropic", chat)


def create_google_producer(settings: ProviderSettings) -> TextProducer:
    try:
        from langchain_google_genai import ChatGoogleGenerativeAI
    except ImportError as e:
        raise _missing_sdk("google", "langchain-google-genai") from e
    chat = ChatGoogleGenerativeAI(
        model=settings.model or "gemini-2.0-flash",
        google_api_key=settings.api_key,
        **settings.extra,
    )
    return ChatModelProducer("google", chat, max_tokens_param="max_output_tokens")


BUILTIN_FACTORIES: Dict[str, Callable[[ProviderSettings], TextProducer]] = {
    "openai": create_openai_producer,
    "anthropic": create_anthropic_producer,
    "google": create_google_producer,
}

_ENV_KEYS = {
    "openai": ("OPENAI_API_KEY", "OPENAI_MODEL"),
    "anthropic": ("ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
    "google": ("GOOGLE_API_KEY", "GOOGLE_MODEL"),
}


# ============================================================
# Registry
# ============================================================
class ProviderRegistry:
    """provider 이름 → producer. 인스턴스는 처음 요청될 때 한 번만 만들어진다."""

    def __init__(self, factories: Optional[Mapping[str, Callable[[], TextProducer]]] = None):
        self._factories: Dict[str, Callable[[], TextProducer]] = dict(factories or {})
        self._instances: Dict[str, TextProducer] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Mapping[str, ProviderSettings]) -> "ProviderRegistry":
        registry = cls()
        for name, s in settings.items():
            factory = BUILTIN_FACTORIES.get(name)
            if factory is None:
                raise ConfigError(f"Unknown provider: {name!r} (built-in: {sorted(BUILTIN_FACTORIES)})")
            registry.register(name, functools.partial(factory, s))
        return registry

    @classmethod
    def from_env(cls) -> "ProviderRegistry":
        """``OPENAI_API_KEY`` / ``ANTHROPIC_API_KEY`` / ``GOOGLE_API_KEY``가 있는 provider만 등록."""
        settings = {}
        for name, (key_var, model_var) in _ENV_KEYS.items():
            api_key = os.getenv(key_var)
            if api_key:
                settings[name] = ProviderSettings(api_key=api_key, model=os.getenv(model_var))
        return cls.from_settings(settings)

    def register(self, name: str, factory: Callable[[], TextProducer]) -> None:
        with self._lock:
            self._factories[name] = factory
            self._instances.pop(name, None)

    def register_instance(self, name: str, producer: TextProducer) -> None:
        with self._lock:
            self._instances[name] = producer

    def is_configured(self, name: str) -> bool:
        return name in self._instances or name in self._factories

    def names(self):
        return sorted(set(self._factories) | set(self._instances))

    def get(self, name: str) -> TextProducer:
        with self._lock:
            producer = self._instances.get(name)
            if producer is not None:
                return producer
            factory = self._factories.get(name)
            if factory is None:
                raise ConfigError(f"Provider {name!r} is not configured")
            logger.debug("creating provider %s", name)
            producer = factory()
            self._instances[name] = producer
            return producer
