# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, Union

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import BaseOutputParser
from pydantic import BaseModel, Field

from .config import MULTI, SINGLE, CodecConfig, validate_mode
from .errors import PositionalParserError
from .prompting import PromptOptions, render_grammar
from .row_parser import PydanticValidator, decode, decode_rows
from .schema_analyzer import analyze_model


DEFAULT_CODEC_CONFIG = CodecConfig()


class PositionalOutputParser(BaseOutputParser[Union[BaseModel, List[BaseModel]]]):
    """LangChain용 positional 출력 파서.

    ``mode="single"``이면 모델 인스턴스 하나, ``mode="multi"``이면 리스트를 반환한다.
    """

    pydantic_model: Type[BaseModel] = Field(default=None)
    cfg: CodecConfig = Field(default_factory=lambda: DEFAULT_CODEC_CONFIG)
    mode: str = SINGLE
    max_rows: Optional[int] = None
    _positions: Any = None

    def __init__(
        self,
        model: Type[BaseModel],
        cfg: Optional[CodecConfig] = None,
        mode: str = SINGLE,
        max_rows: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        validate_mode(mode)
        object.__setattr__(self, 'pydantic_model', model)
        object.__setattr__(self, 'cfg', cfg or DEFAULT_CODEC_CONFIG)
        object.__setattr__(self, 'mode', mode)
        object.__setattr__(self, 'max_rows', max_rows)
        object.__setattr__(self, '_positions', analyze_model(model))

    def get_format_instructions(self) -> str:
        return render_grammar(self._positions, self.cfg, PromptOptions(mode=self.mode, max_rows=self.max_rows))

    def parse(self, text: str) -> Union[BaseModel, List[BaseModel]]:
        try:
            result = decode(text, self._positions, PydanticValidator(self.pydantic_model), self.cfg, self.mode)
        except PositionalParserError as e:
            raise OutputParserException(str(e), llm_output=text) from e
        if self.mode == MULTI:
            return result.records
        return result.records[0]

    def decode(self, text: str) -> List[Dict[str, Any]]:
        """positional 텍스트를 dict 리스트로 디코딩 (Pydantic 검증 없이).

        Args:
            text: positional 형식의 텍스트

        Returns:
            List[dict]: 행마다 하나씩, 검증 전 dict
        """
        return decode_rows(text, self._positions, self.cfg)

    @property
    def _type(self) -> str:
        return "positional"
