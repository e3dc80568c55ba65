"""Deterministic fixes tried before the model-backed transform.

Each heuristic matches a known error shape and rewrites the SQL without a
model call. A heuristic returns None when it does not apply.
"""

import logging
import re

from src.actions.models import ActionContext, ActionResult, Risk
from src.copilot.i18n import Translator, translate as default_translate

logger = logging.getLogger(__name__)

_MISSING_ALIAS_MARKER = "unknown table expression identifier"
_IDENTIFIER_PATTERN = re.compile(r"identifier\s+'([^']+)'", re.IGNORECASE)
_CLAUSE_KEYWORDS = (
    "where|join|inner|left|right|full|cross|outer|on|using|group|order|limit|having|union|window|prewhere|final|settings|format"
)


def fix_missing_alias(ctx: ActionContext, translate: Translator | None = None) -> ActionResult | None:
    """Add a table alias the query uses but never declares.

    Matches errors such as ``Unknown table expression identifier 'orders'``.
    When the SQL contains ``FROM orders`` without an alias, the alias is the
    identifier's first letter, lower-cased, appended after the table.

    Args:
        ctx: Action context with the failing SQL and its error.
        translate: Localization function for the result text.

    Returns:
        A medium-risk result, or None if the error or SQL does not match.
    """
    t = translate or default_translate
    message = ctx.error_message
    if _MISSING_ALIAS_MARKER not in message.lower():
        return None

    match = _IDENTIFIER_PATTERN.search(message)
    if match is None:
        return None
    ident = match.group(1)

    from_pattern = re.compile(rf"\bfrom\s+{re.escape(ident)}\b", re.IGNORECASE)
    aliased_pattern = re.compile(
        rf"\bfrom\s+{re.escape(ident)}\s+(as\s+)?(?!(?:{_CLAUSE_KEYWORDS})\b)\w+\b", re.IGNORECASE,
    )
    if not from_pattern.search(ctx.sql) or aliased_pattern.search(ctx.sql):
        return None

    alias = ident[0].lower()
    fixed_sql = from_pattern.sub(lambda m: f"{m.group(0)} {alias}", ctx.sql, count=1)
    logger.debug("Missing-alias heuristic matched %s, alias %s", ident, alias)
    return ActionResult(
        title=t("Copilot.ActionResults.FixSqlError.MissingAliasTitle"),
        explanation=t(
            "Copilot.ActionResults.FixSqlError.MissingAliasDescription", ident=ident, alias=alias,
        ),
        fixed_sql=fixed_sql,
        risk=Risk.MEDIUM,
    )


def try_heuristic_fix(ctx: ActionContext, translate: Translator | None = None) -> ActionResult | None:
    """Run the error-fixing heuristics in order; first match wins."""
    for heuristic in (fix_missing_alias,):
        result = heuristic(ctx, translate)
        if result is not None:
            return result
    return None
