"""Copilot context: SQL inference and versioned context envelopes."""

from src.copilot.envelope import (
    DEFAULT_MAX_EDITOR_TEXT_LENGTH,
    TRUNCATION_MARKER,
    build_fix_input,
    build_sql_envelope,
    build_table_envelope,
    normalize_dialect,
    to_prompt_context,
    truncate_text,
)
from src.copilot.inference import ParserCache, SqlContextInferencer, infer_sql_context
from src.copilot.models import (
    Confidence,
    CopilotEnvelope,
    CopilotFixInput,
    Dialect,
    EnvelopeMeta,
    InferredSqlContext,
    InferredTable,
    SqlEnvelope,
    TableEnvelope,
    TableInfo,
    parse_envelope,
)

__all__ = [
    "Confidence",
    "CopilotEnvelope",
    "CopilotFixInput",
    "DEFAULT_MAX_EDITOR_TEXT_LENGTH",
    "Dialect",
    "EnvelopeMeta",
    "InferredSqlContext",
    "InferredTable",
    "ParserCache",
    "SqlContextInferencer",
    "SqlEnvelope",
    "TRUNCATION_MARKER",
    "TableEnvelope",
    "TableInfo",
    "build_fix_input",
    "build_sql_envelope",
    "build_table_envelope",
    "infer_sql_context",
    "normalize_dialect",
    "parse_envelope",
    "to_prompt_context",
    "truncate_text",
]
