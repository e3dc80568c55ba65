"""Quick action executor.

Resolves an intent against a fixed "last execution" context: validates that
the action applies, tries its deterministic heuristic, and otherwise asks
the model for a transform. A missing AI configuration is fatal and
propagates; any other transform failure degrades to the original SQL with
high risk. A proposal whose SQL equals the input after whitespace
normalization is always high risk.
"""

import logging
import re

from src.actions.llm import LLMJsonRunner
from src.actions.models import ActionContext, ActionError, ActionIntent, ActionResult, Risk, TransformOutput
from src.actions.registry import get_quick_action
from src.copilot.envelope import normalize_dialect
from src.copilot.i18n import Translator, translate as default_translate
from src.copilot.models import CopilotFixInput
from src.errors import (
    ActionNotApplicableError,
    ActionRequiresErrorError,
    MissingAIConfigError,
    UnknownActionError,
    UnsupportedSurfaceError,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_sql(sql: str) -> str:
    """Collapse whitespace and lower-case, for no-op detection."""
    return _WHITESPACE.sub(" ", sql).strip().lower()


def enforce_risk(result: ActionResult, original_sql: str) -> ActionResult:
    """Force high risk when the proposal does not change the SQL."""
    if normalize_sql(result.fixed_sql) == normalize_sql(original_sql) and result.risk != Risk.HIGH:
        return result.model_copy(update={"risk": Risk.HIGH})
    return result


def to_action_context(
    fix_input: CopilotFixInput | dict,
    translate: Translator | None = None,
) -> ActionContext:
    """Map quick-action input to an ActionContext.

    Raises:
        UnsupportedSurfaceError: If the input is not from the SQL surface.
    """
    t = translate or default_translate
    if isinstance(fix_input, dict):
        surface = fix_input.get("surface")
        if surface != "sql":
            raise UnsupportedSurfaceError(str(surface), t("Copilot.Errors.UnsupportedSurface"))
        fix_input = CopilotFixInput.model_validate(fix_input)

    execution = fix_input.last_execution
    error = None
    if execution.error is not None and execution.error.message:
        error = ActionError(message=execution.error.message, code=execution.error.code)
    return ActionContext(
        dialect=normalize_dialect(execution.dialect),
        sql=execution.sql,
        database=execution.database,
        error=error,
    )


class QuickActionExecutor:
    """Runs quick actions locally.

    Args:
        llm: Runner for the model-backed transform.
        translate: Localization function.
        max_retries: Extra model attempts after a failed one.
    """

    def __init__(
        self,
        llm: LLMJsonRunner | None = None,
        translate: Translator | None = None,
        max_retries: int = 1,
    ):
        self._llm = llm
        self._t = translate or default_translate
        self._max_retries = max_retries

    def _runner(self) -> LLMJsonRunner:
        if self._llm is None:
            self._llm = LLMJsonRunner(translate=self._t)
        return self._llm

    def run(self, intent: str | ActionIntent, ctx: ActionContext) -> ActionResult:
        """Run one quick action.

        Args:
            intent: Registered intent, e.g. "fix-sql-error".
            ctx: Last execution to work on.

        Returns:
            The proposed change.

        Raises:
            UnknownActionError: If the intent is not registered.
            ActionRequiresErrorError: If the action needs an error and ctx has none.
            ActionNotApplicableError: If the action does not apply to ctx.
            MissingAIConfigError: If the model path is needed but not configured.
        """
        action = get_quick_action(intent)
        if action is None:
            name = intent.value if isinstance(intent, ActionIntent) else str(intent)
            raise UnknownActionError(name, self._t("Copilot.Errors.UnknownAction", intent=name))
        if action.requires_error and not ctx.error_message:
            raise ActionRequiresErrorError(self._t("Copilot.Errors.RequiresError"))
        if not action.detect(ctx):
            raise ActionNotApplicableError(self._t("Copilot.Errors.NotApplicable"))

        if action.heuristic is not None:
            heuristic_result = action.heuristic(ctx, self._t)
            if heuristic_result is not None:
                logger.info("Quick action %s resolved by heuristic", action.intent.value)
                return enforce_risk(heuristic_result, ctx.sql)

        try:
            output = self._runner().run(
                action.build_prompt(ctx),
                TransformOutput,
                temperature=action.temperature,
                max_retries=self._max_retries,
            )
        except MissingAIConfigError:
            raise
        except Exception as e:
            logger.warning("Quick action %s failed: %s", action.intent.value, e)
            return ActionResult(
                title=self._t(action.failed_title_key),
                explanation=self._t(action.failed_description_key, message=str(e) or "unknown error"),
                fixed_sql=ctx.sql,
                risk=Risk.HIGH,
            )

        result = ActionResult(
            title=output.title,
            explanation=output.explanation,
            fixed_sql=output.fixed_sql.strip() or ctx.sql,
            risk=output.risk,
        )
        return enforce_risk(result, ctx.sql)

    def run_fix_input(self, intent: str | ActionIntent, fix_input: CopilotFixInput | dict) -> ActionResult:
        """Map quick-action input to a context and run the action on it."""
        return self.run(intent, to_action_context(fix_input, self._t))
