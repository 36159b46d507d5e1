# -*- coding: utf-8 -*-
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from .config import MULTI, SINGLE, CodecConfig, validate_mode
from .escape import join_escaped
from .schema_analyzer import PositionEntry, analyze_model
from .schema_nodes import FieldKind

DATE_FORMAT_HINT = "date (ISO format: YYYY-MM-DD or YYYY-MM-DDTHH:mm:ssZ)"


@dataclass(frozen=True)
class PromptOptions:
    mode: str = SINGLE
    max_rows: Optional[int] = None
    preamble: Optional[str] = None  # 사용자 system prompt, 맨 앞에 붙는다


def describe_type(pos: PositionEntry, sub_delimiter: str) -> str:
    if pos.kind == FieldKind.BOOLEAN:
        return "boolean (true or false)"
    if pos.kind == FieldKind.DATE:
        return DATE_FORMAT_HINT
    if pos.kind == FieldKind.ENUM:
        if pos.enum_values:
            return "one of: " + ", ".join(pos.enum_values)
        return "enum value"
    if pos.kind == FieldKind.LITERAL:
        return "exactly: " + json.dumps(pos.literal_value, ensure_ascii=False, default=str)
    if pos.kind == FieldKind.ARRAY:
        item = pos.array_item_kind or FieldKind.STRING
        return f'array of {item} (use "{sub_delimiter}" between items)'
    if pos.kind == FieldKind.JSON:
        return "JSON array of objects"
    return str(pos.kind)


def example_value(pos: PositionEntry, sub_delimiter: str, variant: int = 0) -> str:
    """예시 행에 들어갈 placeholder 값. ``variant``는 두 번째 예시 행용."""
    if pos.kind == FieldKind.STRING:
        return "example_text" if variant == 0 else "other_text"
    if pos.kind == FieldKind.NUMBER:
        return "42" if variant == 0 else "7"
    if pos.kind == FieldKind.BOOLEAN:
        return "true" if variant == 0 else "false"
    if pos.kind == FieldKind.DATE:
        return "2024-01-15" if variant == 0 else "2024-02-01"
    if pos.kind == FieldKind.ENUM:
        values = pos.enum_values or ("value",)
        return values[variant % len(values)]
    if pos.kind == FieldKind.LITERAL:
        return str(pos.literal_value)
    if pos.kind == FieldKind.ARRAY:
        if pos.array_item_kind == FieldKind.NUMBER:
            return sub_delimiter.join(("1", "2", "3"))
        if pos.array_item_kind == FieldKind.BOOLEAN:
            return sub_delimiter.join(("true", "false"))
        return sub_delimiter.join(("item1", "item2", "item3"))
    if pos.kind == FieldKind.JSON:
        return '[{"key":"value"}]'
    return "value"


def example_row(positions: Sequence[PositionEntry], cfg: CodecConfig, variant: int = 0) -> str:
    values = (example_value(p, cfg.sub_delimiter, variant) for p in positions)
    return join_escaped(values, cfg.delimiter, cfg.escape_char)


def render_grammar(
    positions: Sequence[PositionEntry],
    cfg: Optional[CodecConfig] = None,
    options: Optional[PromptOptions] = None,
) -> str:
    """컬럼 목록 → LLM에게 줄 positional 포맷 지시문 (system prompt)."""
    cfg = cfg or CodecConfig()
    options = options or PromptOptions()
    validate_mode(options.mode)
    d, sd, esc = cfg.delimiter, cfg.sub_delimiter, cfg.escape_char

    out: List[str] = []
    if options.preamble:
        out.append(options.preamble)
        out.append("")

    out.append("OUTPUT FORMAT:")
    out.append(f'Respond ONLY in positional format with "{d}" as the delimiter between fields.')
    out.append("")

    out.append("SCHEMA (output values in this exact order):")
    for pos in positions:
        line = f"{pos.index}: {pos.path} - {describe_type(pos, sd)}"
        if pos.optional:
            line += " (optional)"
        if pos.nullable:
            line += " (nullable)"
        out.append(line)
    out.append("")

    out.append("EXAMPLE OUTPUT:")
    out.append(example_row(positions, cfg))
    if options.mode == MULTI:
        out.append(example_row(positions, cfg, variant=1))
    out.append("")

    out.append("RULES:")
    if options.mode == MULTI:
        out.append("- Output ONE ROW PER OBJECT (multiple rows expected)")
        if options.max_rows:
            out.append(f"- Output at most {options.max_rows} rows")
    else:
        out.append("- Output EXACTLY ONE ROW (single object)")
    out.append("- Fields MUST be in the exact order shown above")
    out.append(f"- For optional/missing fields, leave empty between delimiters: val1{d}{d}val3")
    if any(p.nullable for p in positions):
        out.append("- For nullable fields with no value, write: null")
    out.append(f'- If a value contains "{d[0]}" or "{esc}", put "{esc}" before it: a{esc}{d[0]}b')
    out.append(f'- For array fields, separate items with "{sd}": item1{sd}item2{sd}item3')
    out.append("- For array-of-objects fields, use inline JSON on one line: [{...},{...}]")
    out.append("- Output ONLY the data rows - no headers, no explanations, no markdown")
    return "\n".join(out)


def build_user_prompt(prompt: str, input_data: Any = None, input_format: str = "auto") -> str:
    """사용자 지시 + (선택) 입력 데이터.

    input_format: "json" | "text" | "auto" (auto는 문자열이면 text, 아니면 json)
    """
    if input_data is None:
        return prompt
    if input_format == "text" or (input_format == "auto" and isinstance(input_data, str)):
        formatted = str(input_data)
    else:
        if isinstance(input_data, BaseModel):
            input_data = input_data.model_dump(mode="json")
        try:
            formatted = json.dumps(input_data, ensure_ascii=False, indent=2, default=str)
        except (TypeError, ValueError):
            formatted = str(input_data)
    return f"{prompt}\n\nINPUT DATA:\n{formatted}"


def build_prompts(
    positions: Sequence[PositionEntry],
    prompt: str,
    cfg: Optional[CodecConfig] = None,
    options: Optional[PromptOptions] = None,
    input_data: Any = None,
    input_format: str = "auto",
) -> Tuple[str, str]:
    """(system_prompt, user_prompt)."""
    return (
        render_grammar(positions, cfg, options),
        build_user_prompt(prompt, input_data, input_format),
    )


def build_positional_format_prompt(
    model: Type[BaseModel],
    cfg: Optional[CodecConfig] = None,
    mode: str = SINGLE,
    max_rows: Optional[int] = None,
) -> str:
    """pydantic 모델 기반 positional 포맷 지시문."""
    return render_grammar(analyze_model(model), cfg, PromptOptions(mode=mode, max_rows=max_rows))


def build_positional_example(model: Type[BaseModel], cfg: Optional[CodecConfig] = None) -> str:
    """구조 학습용 '작은' 예시 (헤더 주석 + 예시 행 두 개)."""
    cfg = cfg or CodecConfig()
    positions = analyze_model(model)
    header = " ".join(f"[{p.index}]{p.path}" for p in positions)
    return (
        "```\n"
        f"# Example positional output for {model.__name__}:\n"
        f"# columns: {header}\n"
        f"{example_row(positions, cfg)}\n"
        f"{example_row(positions, cfg, variant=1)}\n"
        "```\n"
    )
