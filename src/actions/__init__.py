"""Quick actions: one-shot SQL transforms for an editor tab's last execution."""

from src.actions.client import QuickActionClient
from src.actions.executor import QuickActionExecutor, enforce_risk, normalize_sql, to_action_context
from src.actions.heuristics import fix_missing_alias, try_heuristic_fix
from src.actions.llm import LLMJsonRunner, extract_json_object, run_llm_json
from src.actions.models import ActionContext, ActionError, ActionIntent, ActionResult, Risk, TransformOutput
from src.actions.registry import (
    QUICK_ACTIONS,
    QuickAction,
    QuickActionAvailability,
    get_quick_action,
    get_quick_action_availability,
)

__all__ = [
    "ActionContext",
    "ActionError",
    "ActionIntent",
    "ActionResult",
    "LLMJsonRunner",
    "QUICK_ACTIONS",
    "QuickAction",
    "QuickActionAvailability",
    "QuickActionClient",
    "QuickActionExecutor",
    "Risk",
    "TransformOutput",
    "enforce_risk",
    "extract_json_object",
    "fix_missing_alias",
    "get_quick_action",
    "get_quick_action_availability",
    "normalize_sql",
    "run_llm_json",
    "to_action_context",
    "try_heuristic_fix",
]
