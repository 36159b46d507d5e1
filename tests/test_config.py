from __future__ import annotations

import pytest
from pydantic import BaseModel

from positional_langchain_parser import CodecConfig, ConfigError, analyze_model
from positional_langchain_parser.config import validate_mode
from positional_langchain_parser.security import RawLogPolicy, mask_pii_text, safe_raw_preview


class Login(BaseModel):
    user: str
    password: str


def test_defaults():
    cfg = CodecConfig()
    assert (cfg.delimiter, cfg.sub_delimiter, cfg.escape_char) == ("|", ";", "\\")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"delimiter": ";", "sub_delimiter": ";"},
        {"delimiter": "||", "sub_delimiter": "|"},
        {"delimiter": "\\"},
        {"escape_char": "\\\\"},
        {"delimiter": ""},
        {"sub_delimiter": "\n"},
        {"delimiter": "\t"},
        {"delimiter": " "},
        {"delimiter": " | "},
        {"sub_delimiter": "; "},
    ],
)
def test_ambiguous_configs_are_rejected(kwargs):
    with pytest.raises(ConfigError):
        CodecConfig(**kwargs)


def test_multi_char_delimiters_are_allowed():
    cfg = CodecConfig(delimiter="||", sub_delimiter=";;")
    assert cfg.delimiter == "||"


def test_from_env(monkeypatch):
    monkeypatch.setenv("POSITIONAL_DELIMITER", "::")
    monkeypatch.setenv("POSITIONAL_SUB_DELIMITER", ",")
    cfg = CodecConfig.from_env()
    assert cfg.delimiter == "::"
    assert cfg.sub_delimiter == ","
    assert cfg.escape_char == "\\"


def test_validate_mode():
    assert validate_mode("single") == "single"
    assert validate_mode("multi") == "multi"
    with pytest.raises(ConfigError):
        validate_mode("batch")


def test_raw_preview_is_redacted_by_default(monkeypatch):
    monkeypatch.delenv("POSITIONAL_PARSER_LOG_RAW", raising=False)
    assert safe_raw_preview("secret|row") == "REDACTED"


def test_raw_preview_masks_pii_when_enabled():
    policy = RawLogPolicy(enabled=True, preview_chars=100)
    preview = safe_raw_preview("Alice|alice@example.com|true", policy)
    assert preview == "Alice|[REDACTED_EMAIL]|true"
    assert safe_raw_preview("abcdef", RawLogPolicy(enabled=True, preview_chars=3)) == "abc"


def test_raw_preview_limits_rows_and_redacts_columns():
    positions = analyze_model(Login)
    policy = RawLogPolicy(enabled=True, preview_rows=2, redact_paths=("password",))
    preview = safe_raw_preview("kim|hunter2\nlee|s3cret\npark|pw", policy, positions, CodecConfig())
    assert preview == "kim|***\nlee|***\n... (+1 rows)"


def test_policy_from_env(monkeypatch):
    monkeypatch.setenv("POSITIONAL_PARSER_LOG_RAW", "TRUE")
    monkeypatch.setenv("POSITIONAL_PARSER_LOG_PREVIEW_CHARS", "oops")
    monkeypatch.setenv("POSITIONAL_PARSER_LOG_REDACT_PATHS", "user.email, ssn")
    policy = RawLogPolicy.from_env()
    assert policy.enabled
    assert policy.preview_chars == 200
    assert policy.redact_paths == ("user.email", "ssn")


def test_mask_pii_text_phone():
    assert "[REDACTED_PHONE]" in mask_pii_text("call 010-1234-5678 now")
