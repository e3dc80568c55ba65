"""Build copilot context envelopes and the prompt context sent to the assistant.

Envelopes are immutable snapshots of editor or table-browser state plus the
SQL inference derived from it. The prompt context is the reduced summary of
an envelope that is submitted alongside a chat message; long drafts are
truncated with a visible marker so the payload stays within a fixed bound.
"""

import logging
from typing import Any

from src.copilot.inference import SqlContextInferencer, infer_sql_context
from src.copilot.models import (
    CopilotFixInput,
    Dialect,
    EnvelopeMeta,
    ExecutionError,
    LastExecution,
    Selection,
    SqlBaseline,
    SqlContext,
    SqlDraft,
    SqlEnvelope,
    TableContext,
    TableEnvelope,
    TableInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_EDITOR_TEXT_LENGTH = 4000
TRUNCATION_MARKER = "…(truncated)"

_DIALECT_ALIASES: dict[str, Dialect] = {
    "clickhouse": Dialect.CLICKHOUSE,
    "duckdb": Dialect.DUCKDB,
    "mysql": Dialect.MYSQL,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
}


def normalize_dialect(dialect: str | Dialect | None) -> Dialect:
    """Map a case-insensitive dialect alias to its canonical value.

    Args:
        dialect: Dialect name such as "PostgreSQL", or None.

    Returns:
        Canonical Dialect; anything unrecognized maps to Dialect.UNKNOWN.
    """
    if isinstance(dialect, Dialect):
        return dialect
    return _DIALECT_ALIASES.get((dialect or "").strip().lower(), Dialect.UNKNOWN)


def truncate_text(
    value: str,
    limit: int = DEFAULT_MAX_EDITOR_TEXT_LENGTH,
    marker: str = TRUNCATION_MARKER,
) -> str:
    """Truncate text so the result, marker included, is at most `limit` long.

    Length is counted in code points, so a character is never split.

    Args:
        value: Text to bound.
        limit: Maximum length of the returned string.
        marker: Suffix appended when truncation happens.

    Returns:
        The original text when it fits, otherwise a prefix plus the marker.
        If the limit cannot even hold the marker, the marker itself is cut.
    """
    if len(value) <= limit:
        return value
    if limit <= len(marker):
        return marker[:max(limit, 0)]
    return value[:limit - len(marker)] + marker


def build_sql_envelope(
    editor_text: str,
    selection: Selection | dict | None = None,
    baseline_database: str | None = None,
    dialect: str | Dialect | None = None,
    meta: EnvelopeMeta | dict | None = None,
    updated_at: int | None = None,
    inferencer: SqlContextInferencer | None = None,
) -> SqlEnvelope:
    """Build the envelope for the SQL editor surface.

    Args:
        editor_text: Current draft in the editor.
        selection: Optional selection offsets into the draft.
        baseline_database: Database active in the editor.
        dialect: Dialect name or value; defaults to unknown.
        meta: Tab/connection identity.
        updated_at: Caller-supplied timestamp in milliseconds.
        inferencer: Inferencer to use instead of the shared one.

    Returns:
        A new immutable SqlEnvelope.
    """
    canonical = normalize_dialect(dialect)
    if inferencer is not None:
        inferred = inferencer.infer(canonical, editor_text, baseline_database)
    else:
        inferred = infer_sql_context(canonical, editor_text, baseline_database)

    if isinstance(selection, dict):
        selection = Selection.model_validate(selection)
    if isinstance(meta, dict):
        meta = EnvelopeMeta.model_validate(meta)

    return SqlEnvelope(
        updated_at=updated_at,
        meta=meta,
        context=SqlContext(
            baseline=SqlBaseline(database=baseline_database, dialect=canonical),
            draft=SqlDraft(editor_text=editor_text, selection=selection, inferred=inferred),
        ),
    )


def build_table_envelope(
    table: TableInfo | dict,
    database: str | None = None,
    meta: EnvelopeMeta | dict | None = None,
    updated_at: int | None = None,
) -> TableEnvelope:
    """Build the envelope for the table browser surface."""
    if isinstance(table, dict):
        table = TableInfo.model_validate(table)
    if isinstance(meta, dict):
        meta = EnvelopeMeta.model_validate(meta)
    return TableEnvelope(
        updated_at=updated_at,
        meta=meta,
        context=TableContext(database=database, table=table),
    )


def build_fix_input(
    sql: str,
    error: ExecutionError | dict | None = None,
    database: str | None = None,
    dialect: str | Dialect | None = None,
    occurred_at: int | None = None,
    meta: EnvelopeMeta | dict | None = None,
) -> CopilotFixInput:
    """Map the last execution of an editor tab to quick-action input.

    The error is carried only when it has a non-empty message.
    """
    if isinstance(error, dict):
        message = error.get("message")
        error = ExecutionError(message=message, code=error.get("code")) if message else None
    elif error is not None and not error.message:
        error = None
    if isinstance(meta, dict):
        meta = EnvelopeMeta.model_validate(meta)

    return CopilotFixInput(
        meta=meta,
        last_execution=LastExecution(
            occurred_at=occurred_at,
            dialect=normalize_dialect(dialect),
            database=database,
            sql=sql,
            error=error,
        ),
    )


def to_prompt_context(
    envelope: SqlEnvelope | TableEnvelope,
    max_editor_text_length: int = DEFAULT_MAX_EDITOR_TEXT_LENGTH,
    truncation_marker: str = TRUNCATION_MARKER,
) -> dict[str, Any]:
    """Reduce an envelope to the summary submitted with a chat message.

    Args:
        envelope: Envelope of either surface.
        max_editor_text_length: Upper bound on draft.editorText.
        truncation_marker: Suffix marking truncated drafts.

    Returns:
        JSON-ready dict. For the sql surface the draft text is bounded; for
        the table surface absent top-level fields are omitted while every
        table field is present, null when missing.
    """
    if isinstance(envelope, SqlEnvelope):
        context = envelope.context
        editor_text = truncate_text(
            context.draft.editor_text, max_editor_text_length, truncation_marker
        )
        if len(editor_text) != len(context.draft.editor_text):
            logger.debug(
                "Truncated draft from %d to %d characters",
                len(context.draft.editor_text), len(editor_text),
            )
        return {
            "baseline": {
                "database": context.baseline.database,
                "dialect": context.baseline.dialect.value,
            },
            "draft": {
                "editorText": editor_text,
                "selection": (
                    context.draft.selection.model_dump(by_alias=True)
                    if context.draft.selection else None
                ),
                "inferred": context.draft.inferred.model_dump(by_alias=True, mode="json"),
            },
        }

    context = envelope.context
    result: dict[str, Any] = {}
    if context.database is not None:
        result["database"] = context.database
    table = context.table
    result["table"] = {
        "schema": table.schema_name,
        "name": table.name,
        "selectedColumn": table.selected_column,
        "rowCount": table.row_count,
        "engine": table.engine,
        "partitionKey": table.partition_key,
        "primaryKey": table.primary_key,
    }
    return result
