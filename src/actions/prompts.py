"""Prompt builders for the model-backed quick action transforms.

Every prompt carries the same context block (dialect, database, SQL and the
last error when there is one) followed by task rules and the JSON reply
contract that TransformOutput validates.
"""

from src.actions.models import ActionContext

SYSTEM_PROMPT = """You are a SQL assistant embedded in a database workbench.
You receive one SQL statement and a task. You reply with a single JSON object and nothing else."""

_OUTPUT_CONTRACT = """OUTPUT REQUIREMENTS:
Reply with one JSON object with exactly these keys:
- "title": short headline for the change (max 80 characters)
- "explanation": what you changed and why, in 1-3 sentences
- "fixedSql": the complete SQL statement to run instead of the original
- "risk": "low" if the result set is unchanged, "medium" if it may differ, "high" if unsure
Do not wrap the JSON in markdown fences."""


def _context_block(ctx: ActionContext) -> str:
    lines = [
        "CONTEXT:",
        f"- Dialect: {ctx.dialect.value}",
        f"- Database: {ctx.database or 'unknown'}",
    ]
    if ctx.error is not None:
        code = f" (code {ctx.error.code})" if ctx.error.code is not None else ""
        lines.append(f"- Last error{code}: {ctx.error.message}")
    lines.extend(["", "SQL:", ctx.sql.strip()])
    return "\n".join(lines)


def build_fix_sql_error_prompt(ctx: ActionContext) -> str:
    """Prompt for repairing SQL that failed with ctx.error."""
    return f"""{_context_block(ctx)}

TASK: Fix the SQL so that the error above no longer occurs.

RULES:
1. Change only what the error requires; keep the query's intent
2. Keep the syntax valid for the {ctx.dialect.value} dialect
3. Never invent tables or columns that are not in the SQL

{_OUTPUT_CONTRACT}"""


def build_optimize_performance_prompt(ctx: ActionContext) -> str:
    """Prompt for a faster query with the same result."""
    return f"""{_context_block(ctx)}

TASK: Rewrite the SQL to run faster while returning the same rows.

RULES:
1. Prefer filtering early, selecting only needed columns, and avoiding repeated subqueries
2. Do not change the result set; if that is not possible, say so and set risk to "high"
3. Keep the syntax valid for the {ctx.dialect.value} dialect

{_OUTPUT_CONTRACT}"""


def build_rewrite_sql_prompt(ctx: ActionContext) -> str:
    """Prompt for a more readable equivalent query."""
    return f"""{_context_block(ctx)}

TASK: Rewrite the SQL for readability.

RULES:
1. Use consistent keyword casing, indentation and meaningful aliases
2. Replace nested subqueries with CTEs where that reads better
3. Keep the result set identical

{_OUTPUT_CONTRACT}"""


def build_to_aggregation_prompt(ctx: ActionContext) -> str:
    """Prompt for turning a row-level query into a GROUP BY summary."""
    return f"""{_context_block(ctx)}

TASK: Convert the SQL into an aggregation that summarizes its rows.

RULES:
1. Group by the most meaningful dimension columns of the query
2. Use COUNT(*) plus SUM/AVG for numeric measures where they make sense
3. Order by the main aggregate, descending
4. The result set will differ from the original; set risk to at least "medium"

{_OUTPUT_CONTRACT}"""
