"""Tests for SQL context inference."""

import pytest

from src.copilot.inference import (
    ParserCache,
    SqlContextInferencer,
    infer_sql_context,
    parse_table_identifier,
    strip_wrapping,
)
from src.copilot.models import Confidence, Dialect, InferredTable


class _ExplodingParser:
    def parse(self, text):
        raise RuntimeError("grammar blew up")


class _ExplodingCache(ParserCache):
    def get(self, dialect):
        return _ExplodingParser()


@pytest.fixture
def inferencer():
    """Inferencer with a fresh parser cache per test."""
    return SqlContextInferencer(ParserCache())


class TestEmptyInput:
    """Blank drafts are a neutral baseline, not a failure."""

    @pytest.mark.parametrize("dialect", list(Dialect))
    @pytest.mark.parametrize("text", ["", "   ", "\n\t  \n"])
    def test_blank_text_is_mid_confidence(self, inferencer, dialect, text):
        ctx = inferencer.infer(dialect, text, "analytics")
        assert ctx.tables == ()
        assert ctx.database == "analytics"
        assert ctx.confidence == Confidence.MID

    def test_blank_text_does_not_touch_cache(self, inferencer):
        inferencer.infer(Dialect.MYSQL, "  ", None)
        assert len(inferencer.cache) == 0


class TestParseFailure:
    """Grammar failures degrade to a low-confidence result."""

    def test_parser_exception_is_swallowed(self):
        inferencer = SqlContextInferencer(_ExplodingCache())
        ctx = inferencer.infer(Dialect.POSTGRES, "SELECT 1", "main")
        assert ctx.tables == ()
        assert ctx.database == "main"
        assert ctx.confidence == Confidence.LOW

    def test_unparseable_sql_is_low(self, inferencer):
        ctx = inferencer.infer(Dialect.MYSQL, "SELECT * FROM (", None)
        assert ctx.confidence == Confidence.LOW
        assert ctx.tables == ()


class TestTableExtraction:
    """Successful parses yield deduplicated tables in textual order."""

    def test_simple_mysql_select(self, inferencer):
        ctx = inferencer.infer(Dialect.MYSQL, "SELECT id FROM users", None)
        assert ctx.tables == (InferredTable(database=None, name="users", raw="users"),)
        assert ctx.database is None
        assert ctx.confidence == Confidence.HIGH

    def test_qualified_quoted_join(self, inferencer):
        sql = (
            "SELECT * FROM `db1`.`orders` o "
            "JOIN db1.customers c ON o.customer_id = c.id"
        )
        ctx = inferencer.infer(Dialect.MYSQL, sql, None)
        assert [(t.database, t.name) for t in ctx.tables] == [
            ("db1", "orders"),
            ("db1", "customers"),
        ]
        assert ctx.database == "db1"
        assert ctx.confidence == Confidence.HIGH

    @pytest.mark.parametrize(
        "dialect",
        [Dialect.MYSQL, Dialect.CLICKHOUSE, Dialect.DUCKDB, Dialect.UNKNOWN],
    )
    def test_backtick_quoting_outside_postgres(self, inferencer, dialect):
        sql = (
            "SELECT * FROM `db1`.`orders` o "
            "JOIN db1.customers c ON o.customer_id = c.id"
        )
        ctx = inferencer.infer(dialect, sql, None)
        assert [(t.database, t.name) for t in ctx.tables] == [
            ("db1", "orders"),
            ("db1", "customers"),
        ]
        assert ctx.confidence == Confidence.HIGH

    def test_duplicates_keep_first_seen(self, inferencer):
        sql = "SELECT * FROM a.t1 JOIN a.t2 ON 1=1 JOIN a.t1 x ON 1=1"
        ctx = inferencer.infer(Dialect.POSTGRES, sql, None)
        assert [t.name for t in ctx.tables] == ["t1", "t2"]

    def test_two_databases_fall_back_to_baseline(self, inferencer):
        sql = "SELECT * FROM a.t1 JOIN b.t2 ON 1=1"
        ctx = inferencer.infer(Dialect.POSTGRES, sql, "main")
        assert ctx.database == "main"
        assert ctx.confidence == Confidence.HIGH

    def test_unqualified_tables_keep_baseline(self, inferencer):
        ctx = inferencer.infer(Dialect.DUCKDB, "SELECT * FROM events", "warehouse")
        assert ctx.database == "warehouse"

    def test_cte_names_are_not_tables(self, inferencer):
        sql = "WITH recent AS (SELECT * FROM logs.events) SELECT * FROM recent"
        ctx = inferencer.infer(Dialect.CLICKHOUSE, sql, None)
        assert [(t.database, t.name) for t in ctx.tables] == [("logs", "events")]

    def test_no_tables_is_mid(self, inferencer):
        ctx = inferencer.infer(Dialect.POSTGRES, "SELECT 1", "main")
        assert ctx.tables == ()
        assert ctx.confidence == Confidence.MID

    def test_deterministic(self, inferencer):
        sql = "SELECT * FROM db.t"
        assert inferencer.infer(Dialect.MYSQL, sql, None) == inferencer.infer(Dialect.MYSQL, sql, None)


class TestParserCache:
    """Parsers are created once per dialect and reused."""

    def test_reuses_parser(self):
        cache = ParserCache()
        first = cache.get(Dialect.MYSQL)
        assert cache.get(Dialect.MYSQL) is first
        assert Dialect.MYSQL in cache
        assert len(cache) == 1

    def test_inference_populates_cache(self, inferencer):
        inferencer.infer(Dialect.POSTGRES, "SELECT * FROM t", None)
        inferencer.infer(Dialect.POSTGRES, "SELECT * FROM u", None)
        assert len(inferencer.cache) == 1

    def test_module_level_helper(self):
        ctx = infer_sql_context(Dialect.MYSQL, "SELECT id FROM users", None)
        assert ctx.tables[0].name == "users"


class TestIdentifierParsing:
    """Identifier cleanup per segment."""

    @pytest.mark.parametrize("raw,expected", [
        ("`orders`", "orders"),
        ('"orders"', "orders"),
        ("[orders]", "orders"),
        ("orders", "orders"),
        ("`", "`"),
    ])
    def test_strip_wrapping(self, raw, expected):
        assert strip_wrapping(raw) == expected

    def test_qualified_identifier(self):
        table = parse_table_identifier("`db1`.`orders`")
        assert table == InferredTable(database="db1", name="orders", raw="`db1`.`orders`")

    def test_three_part_identifier_uses_last_two(self):
        table = parse_table_identifier("catalog.db.tbl")
        assert (table.database, table.name) == ("db", "tbl")

    def test_blank_identifier(self):
        assert parse_table_identifier("  ") is None
        assert parse_table_identifier("db.") is None
