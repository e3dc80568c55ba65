"""Registry of the quick actions offered for a SQL editor tab.

Each QuickAction names its intent, its localized title/description keys,
whether it needs the error of the last execution, an applicability check,
and how the model-backed transform is prompted.
"""

from collections.abc import Callable
from dataclasses import dataclass

from src.actions import prompts
from src.actions.heuristics import try_heuristic_fix
from src.actions.models import ActionContext, ActionIntent, ActionResult
from src.copilot.i18n import Translator, translate as default_translate


def _has_error(ctx: ActionContext) -> bool:
    return bool(ctx.error_message)


def _has_sql(ctx: ActionContext) -> bool:
    return bool(ctx.sql.strip())


@dataclass(frozen=True)
class QuickAction:
    """Definition of one quick action.

    Attributes:
        intent: Stable identifier used on the wire.
        key: Message-catalog segment, e.g. "FixSqlError".
        icon: Icon name for presentation layers.
        detect: Applicability check on the action context.
        build_prompt: Prompt builder for the model-backed transform.
        temperature: Sampling temperature for the transform.
        requires_error: Whether the last execution must have failed.
        heuristic: Deterministic fix tried before the model.
    """

    intent: ActionIntent
    key: str
    icon: str
    detect: Callable[[ActionContext], bool]
    build_prompt: Callable[[ActionContext], str]
    temperature: float
    requires_error: bool = False
    heuristic: Callable[[ActionContext, Translator | None], ActionResult | None] | None = None

    @property
    def title_key(self) -> str:
        return f"Copilot.QuickActions.{self.key}.Title"

    @property
    def description_key(self) -> str:
        return f"Copilot.QuickActions.{self.key}.Description"

    @property
    def failed_title_key(self) -> str:
        return f"Copilot.ActionResults.{self.key}.FailedTitle"

    @property
    def failed_description_key(self) -> str:
        return f"Copilot.ActionResults.{self.key}.FailedDescription"


QUICK_ACTIONS: tuple[QuickAction, ...] = (
    QuickAction(
        intent=ActionIntent.FIX_SQL_ERROR,
        key="FixSqlError",
        icon="AlertTriangle",
        detect=_has_error,
        build_prompt=prompts.build_fix_sql_error_prompt,
        temperature=0.0,
        requires_error=True,
        heuristic=try_heuristic_fix,
    ),
    QuickAction(
        intent=ActionIntent.OPTIMIZE_PERFORMANCE,
        key="OptimizePerformance",
        icon="Gauge",
        detect=_has_sql,
        build_prompt=prompts.build_optimize_performance_prompt,
        temperature=0.1,
    ),
    QuickAction(
        intent=ActionIntent.REWRITE_SQL,
        key="RewriteSql",
        icon="Sparkles",
        detect=_has_sql,
        build_prompt=prompts.build_rewrite_sql_prompt,
        temperature=0.2,
    ),
    QuickAction(
        intent=ActionIntent.TO_AGGREGATION,
        key="ToAggregation",
        icon="Layers3",
        detect=_has_sql,
        build_prompt=prompts.build_to_aggregation_prompt,
        temperature=0.25,
    ),
)

QUICK_ACTION_MAP: dict[str, QuickAction] = {a.intent.value: a for a in QUICK_ACTIONS}


def get_quick_action(intent: str | ActionIntent) -> QuickAction | None:
    key = intent.value if isinstance(intent, ActionIntent) else intent
    return QUICK_ACTION_MAP.get(key)


@dataclass(frozen=True)
class QuickActionAvailability:
    action: QuickAction
    title: str
    description: str
    available: bool
    reason: str | None = None


def get_quick_action_availability(
    ctx: ActionContext,
    translate: Translator | None = None,
) -> list[QuickActionAvailability]:
    """Report, per registered action, whether it can run on ctx.

    Args:
        ctx: Current action context.
        translate: Localization function.

    Returns:
        One entry per action, in registry order, with the localized reason
        when unavailable.
    """
    t = translate or default_translate
    result = []
    for action in QUICK_ACTIONS:
        reason = None
        if action.requires_error and not ctx.error_message:
            reason = t("Copilot.Actions.RequiresError")
        elif not action.detect(ctx):
            reason = t("Copilot.Actions.NotApplicable")
        result.append(QuickActionAvailability(
            action=action,
            title=t(action.title_key),
            description=t(action.description_key),
            available=reason is None,
            reason=reason,
        ))
    return result
