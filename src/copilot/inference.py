"""Infer referenced tables and the target database from a SQL draft.

Inference is advisory: it never raises and never performs I/O. Given the
same (dialect, text, baseline database) it always returns the same result.

Example:
    >>> ctx = infer_sql_context(Dialect.MYSQL, "SELECT id FROM users", None)
    >>> ctx.confidence
    <Confidence.HIGH: 'high'>
    >>> ctx.tables[0].name
    'users'
"""

import logging

from sqlglot import expressions as exp
from sqlglot.dialects.dialect import Dialect as SqlglotDialect

from src.copilot.models import Confidence, Dialect, InferredSqlContext, InferredTable

logger = logging.getLogger(__name__)

# sqlglot dialect name per canonical dialect. Dialects without a grammar of
# their own here (duckdb, unknown) read MySQL syntax, backtick quoting included.
SQLGLOT_DIALECTS: dict[Dialect, str] = {
    Dialect.CLICKHOUSE: "clickhouse",
    Dialect.DUCKDB: "mysql",
    Dialect.MYSQL: "mysql",
    Dialect.POSTGRES: "postgres",
    Dialect.UNKNOWN: "mysql",
}

_WRAPPING_PAIRS = (("`", "`"), ('"', '"'), ("[", "]"), ("'", "'"))


class ParserCache:
    """Parser instances keyed by dialect.

    Each parser is created on first use and kept for the life of the cache.
    A process normally shares one cache; tests build a fresh one per case.
    """

    def __init__(self) -> None:
        self._parsers: dict[Dialect, SqlglotDialect] = {}

    def get(self, dialect: Dialect) -> SqlglotDialect:
        """Return the cached parser for a dialect, creating it if needed."""
        parser = self._parsers.get(dialect)
        if parser is None:
            parser = SqlglotDialect.get_or_raise(SQLGLOT_DIALECTS.get(dialect))
            self._parsers[dialect] = parser
        return parser

    def __len__(self) -> int:
        return len(self._parsers)

    def __contains__(self, dialect: object) -> bool:
        return dialect in self._parsers


def strip_wrapping(value: str) -> str:
    """Remove symmetric quoting or bracket wrapping from one identifier segment."""
    stripped = value.strip()
    for start, end in _WRAPPING_PAIRS:
        if (
            stripped.startswith(start)
            and stripped.endswith(end)
            and len(stripped) >= len(start) + len(end)
        ):
            stripped = stripped[len(start):len(stripped) - len(end)]
    return stripped.strip()


def parse_table_identifier(raw: str) -> InferredTable | None:
    """Split a possibly qualified identifier into database and table name.

    Args:
        raw: Identifier as written, e.g. "`db1`.`orders`" or "users".

    Returns:
        InferredTable, or None when no table name can be recovered.
    """
    cleaned = raw.strip()
    if not cleaned:
        return None

    parts = [strip_wrapping(part) for part in cleaned.split(".")]
    name = parts[-1].strip()
    if not name:
        return None

    database = parts[-2].strip() if len(parts) > 1 else ""
    return InferredTable(database=database or None, name=name, raw=raw)


def _cte_names(expressions: list[exp.Expression]) -> set[str]:
    names: set[str] = set()
    for expression in expressions:
        for cte in expression.find_all(exp.CTE):
            if cte.alias:
                names.add(cte.alias.lower())
    return names


def _table_entities(expressions: list[exp.Expression], parser: SqlglotDialect) -> list[str]:
    """Raw identifiers of every table or view referenced, in textual order."""
    cte_names = _cte_names(expressions)
    raws: list[str] = []
    for expression in expressions:
        for table in expression.find_all(exp.Table, bfs=False):
            # Table-valued functions and CTE references are not tables
            if not isinstance(table.this, exp.Identifier):
                continue
            if not table.db and table.name.lower() in cte_names:
                continue
            raws.append(".".join(part.sql(dialect=parser) for part in table.parts))
    return raws


class SqlContextInferencer:
    """Extracts referenced tables and the implied database from SQL drafts."""

    def __init__(self, cache: ParserCache | None = None) -> None:
        self._cache = cache if cache is not None else ParserCache()

    @property
    def cache(self) -> ParserCache:
        return self._cache

    def infer(
        self,
        dialect: Dialect,
        editor_text: str,
        baseline_database: str | None = None,
    ) -> InferredSqlContext:
        """Infer the SQL context of a draft.

        Args:
            dialect: Canonical dialect selecting the grammar.
            editor_text: Raw editor contents.
            baseline_database: Database active in the editor.

        Returns:
            InferredSqlContext. Empty text yields a neutral 'mid' result;
            a grammar failure yields a 'low' result with no tables.
        """
        if not editor_text.strip():
            return InferredSqlContext(
                tables=(), database=baseline_database, confidence=Confidence.MID
            )

        try:
            parser = self._cache.get(dialect)
            expressions = [e for e in parser.parse(editor_text) if e is not None]
            raws = _table_entities(expressions, parser)
        except Exception as exc:
            logger.debug("SQL inference fell back for dialect %s: %s", dialect.value, exc)
            return InferredSqlContext(
                tables=(), database=baseline_database, confidence=Confidence.LOW
            )

        seen: set[tuple[str, str]] = set()
        tables: list[InferredTable] = []
        for raw in raws:
            parsed = parse_table_identifier(raw)
            if parsed is None:
                continue
            key = (parsed.database or "", parsed.name)
            if key in seen:
                continue
            seen.add(key)
            tables.append(parsed)

        databases = list(dict.fromkeys(
            t.database for t in tables if t.database and t.database.strip()
        ))
        database = databases[0] if len(databases) == 1 else baseline_database

        return InferredSqlContext(
            tables=tuple(tables),
            database=database,
            confidence=Confidence.HIGH if tables else Confidence.MID,
        )


_default_inferencer = SqlContextInferencer()


def infer_sql_context(
    dialect: Dialect,
    editor_text: str,
    baseline_database: str | None = None,
) -> InferredSqlContext:
    """Infer with the process-wide inferencer and its shared parser cache."""
    return _default_inferencer.infer(dialect, editor_text, baseline_database)
