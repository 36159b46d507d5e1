import logging

from .output_parser import PositionalOutputParser
from .cost_analyzer import CostAnalyzer, PromptCostMetrics, FormatComparison
from .config import CodecConfig, SINGLE, MULTI
from .errors import (
    PositionalParserError,
    ConfigError,
    SchemaError,
    ParseError,
    ValidationError,
    ProviderError,
)
from .schema_nodes import FieldKind
from .schema_analyzer import (
    PositionEntry,
    analyze,
    analyze_model,
    analyze_json_schema,
    position_map,
)
from .escape import split_with_escape, escape, unescape, join_escaped
from .coercion import ABSENT, InvalidDate, coerce_value
from .row_parser import (
    DecodeResult,
    RecordValidator,
    PydanticValidator,
    PassthroughValidator,
    decode,
    decode_rows,
    parse_row_raw,
    encode_row,
    encode_rows,
)
from .prompting import PromptOptions, render_grammar, build_user_prompt, build_prompts
from .providers import (
    TextProducer,
    ChatModelProducer,
    ProviderRegistry,
    ProviderResponse,
    ProviderSettings,
    TokenUsage,
)
from .orchestrator import PositionalCompleter, CompletionResult

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "PositionalOutputParser",
    "CostAnalyzer",
    "PromptCostMetrics",
    "FormatComparison",
    "CodecConfig",
    "SINGLE",
    "MULTI",
    "PositionalParserError",
    "ConfigError",
    "SchemaError",
    "ParseError",
    "ValidationError",
    "ProviderError",
    "FieldKind",
    "PositionEntry",
    "analyze",
    "analyze_model",
    "analyze_json_schema",
    "position_map",
    "split_with_escape",
    "escape",
    "unescape",
    "join_escaped",
    "ABSENT",
    "InvalidDate",
    "coerce_value",
    "DecodeResult",
    "RecordValidator",
    "PydanticValidator",
    "PassthroughValidator",
    "decode",
    "decode_rows",
    "parse_row_raw",
    "encode_row",
    "encode_rows",
    "PromptOptions",
    "render_grammar",
    "build_user_prompt",
    "build_prompts",
    "TextProducer",
    "ChatModelProducer",
    "ProviderRegistry",
    "ProviderResponse",
    "ProviderSettings",
    "TokenUsage",
    "PositionalCompleter",
    "CompletionResult",
]
