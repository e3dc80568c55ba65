"""Tests for the deterministic quick-action fixes."""

import pytest

from src.actions.heuristics import fix_missing_alias, try_heuristic_fix
from src.actions.models import ActionContext, ActionError, Risk

ALIAS_ERROR = "Code: 47. DB::Exception: Unknown table expression identifier 'orders' in scope"


def _ctx(sql, message=ALIAS_ERROR):
    error = ActionError(message=message) if message else None
    return ActionContext(sql=sql, error=error)


class TestFixMissingAlias:
    """Missing-alias heuristic."""

    def test_adds_first_letter_alias(self):
        result = fix_missing_alias(_ctx("SELECT o.id FROM orders WHERE o.total > 10"))
        assert result is not None
        assert result.fixed_sql == "SELECT o.id FROM orders o WHERE o.total > 10"
        assert result.risk == Risk.MEDIUM
        assert result.title == "Add missing table alias"
        assert "'orders'" in result.explanation
        assert "'o'" in result.explanation

    def test_table_at_end_of_statement(self):
        result = fix_missing_alias(_ctx("SELECT o.id FROM orders"))
        assert result is not None
        assert result.fixed_sql == "SELECT o.id FROM orders o"

    def test_keyword_after_table_is_not_an_alias(self):
        result = fix_missing_alias(_ctx("select o.id from orders\nlimit 5"))
        assert result is not None
        assert result.fixed_sql == "select o.id from orders o\nlimit 5"

    @pytest.mark.parametrize("sql", [
        "SELECT x.id FROM orders AS x",
        "SELECT x.id FROM orders x WHERE x.id = 1",
    ])
    def test_already_aliased(self, sql):
        assert fix_missing_alias(_ctx(sql)) is None

    def test_table_not_in_from_clause(self):
        assert fix_missing_alias(_ctx("SELECT * FROM customers")) is None

    def test_other_error(self):
        assert fix_missing_alias(_ctx("SELECT o.id FROM orders", "Syntax error near FROM")) is None

    def test_marker_without_identifier(self):
        assert fix_missing_alias(_ctx("SELECT o.id FROM orders", "Unknown table expression identifier")) is None

    def test_no_error(self):
        assert fix_missing_alias(_ctx("SELECT o.id FROM orders", None)) is None

    def test_uses_translator(self):
        result = fix_missing_alias(_ctx("SELECT o.id FROM orders"), translate=lambda key, **_: key)
        assert result.title == "Copilot.ActionResults.FixSqlError.MissingAliasTitle"


class TestTryHeuristicFix:
    """Heuristic chain."""

    def test_first_match_wins(self):
        result = try_heuristic_fix(_ctx("SELECT o.id FROM orders"))
        assert result is not None
        assert result.fixed_sql.endswith("orders o")

    def test_none_when_nothing_matches(self):
        assert try_heuristic_fix(_ctx("SELECT 1", "timeout")) is None
