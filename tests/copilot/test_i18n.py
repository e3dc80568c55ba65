"""Tests for the message catalog and translate functions."""

import logging

from src.copilot.i18n import MESSAGES, make_translator, translate


class TestTranslate:
    """Key lookup and interpolation."""

    def test_known_key(self):
        assert translate("Sessions.Untitled") == "Untitled chat"

    def test_unknown_key_renders_key(self):
        assert translate("Nope.Missing") == "Nope.Missing"

    def test_interpolation(self):
        assert translate("Copilot.Errors.UnknownAction", intent="x") == "Unknown quick action: x"

    def test_missing_placeholder_value_returns_template(self):
        assert translate("Copilot.Errors.UnknownAction", other="x") == "Unknown quick action: {intent}"

    def test_unknown_locale_falls_back_to_english(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.copilot.i18n"):
            t = make_translator("xx")
        assert t("Sessions.Untitled") == MESSAGES["en"]["Sessions.Untitled"]
        assert "No message catalog for locale xx" in caplog.text

    def test_every_action_has_failure_strings(self):
        for name in ("FixSqlError", "OptimizePerformance", "RewriteSql", "ToAggregation"):
            assert f"Copilot.ActionResults.{name}.FailedTitle" in MESSAGES["en"]
            assert f"Copilot.ActionResults.{name}.FailedDescription" in MESSAGES["en"]
