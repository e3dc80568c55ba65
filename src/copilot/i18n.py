"""Message catalog for user-facing copilot strings.

Every string shown to a user goes through a translate function with the
signature ``translate(key, **values) -> str``. The bundled catalog is English;
callers may pass their own translate function to any component.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Translator = Callable[..., str]

DEFAULT_LOCALE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        # Sessions
        "Sessions.Untitled": "Untitled chat",
        "Sessions.DefaultRename": "New chat",
        "Sessions.DeleteSuccess": "Session deleted",
        "Sessions.CopilotAutoCreate": "Copilot sessions are created automatically for each tab.",
        # Session errors
        "Errors.FetchSessions": "Failed to fetch sessions",
        "Errors.FetchSessionDetail": "Failed to fetch session details",
        "Errors.FetchCopilotSession": "Failed to fetch Copilot session",
        "Errors.CreateSession": "Failed to create session",
        "Errors.RenameSession": "Failed to rename session",
        "Errors.DeleteSession": "Failed to delete session",
        "Errors.SessionNameRequired": "Session name cannot be empty",
        "Errors.SessionNotFoundRename": "Session to rename was not found",
        "Errors.SessionNotFoundDelete": "Session to delete was not found",
        "Errors.CopilotCreateUnsupported": "Copilot sessions cannot be created manually.",
        "Errors.CopilotRenameUnsupported": "Copilot sessions cannot be renamed.",
        "Errors.CopilotDeleteUnsupported": "Copilot sessions cannot be deleted.",
        # Thread errors
        "Errors.SessionNotSelected": "Select a session before sending a message",
        "Errors.RequestFailed": "Request failed",
        "Errors.SendFailed": "Failed to send message",
        "Errors.MalformedResponse": "The server returned an invalid response",
        # Quick actions
        "Copilot.QuickActions.FixSqlError.Title": "Fix SQL error",
        "Copilot.QuickActions.FixSqlError.Description": "Repair the query using the last error message.",
        "Copilot.QuickActions.OptimizePerformance.Title": "Optimize performance",
        "Copilot.QuickActions.OptimizePerformance.Description": "Suggest a faster equivalent query.",
        "Copilot.QuickActions.RewriteSql.Title": "Rewrite SQL",
        "Copilot.QuickActions.RewriteSql.Description": "Rewrite the query for readability.",
        "Copilot.QuickActions.ToAggregation.Title": "Convert to aggregation",
        "Copilot.QuickActions.ToAggregation.Description": "Summarize the result with GROUP BY.",
        "Copilot.Actions.RequiresError": "Run the query first; this action needs an error.",
        "Copilot.Actions.NotApplicable": "Not applicable to the current SQL.",
        "Copilot.Errors.UnknownAction": "Unknown quick action: {intent}",
        "Copilot.Errors.RequiresError": "This action requires the error from the last execution.",
        "Copilot.Errors.NotApplicable": "This action does not apply to the current SQL.",
        "Copilot.Errors.UnsupportedSurface": "Quick actions are only available in the SQL editor.",
        "Copilot.Errors.ActionFailed": "Quick action failed",
        "Copilot.Errors.MissingAIConfig": "AI is not configured: {detail}",
        "Copilot.ActionResults.FixSqlError.MissingAliasTitle": "Add missing table alias",
        "Copilot.ActionResults.FixSqlError.MissingAliasDescription": (
            "The query references '{ident}' through an alias that was never declared. "
            "Added alias '{alias}' after the table."
        ),
        "Copilot.ActionResults.FixSqlError.FailedTitle": "Could not fix the SQL",
        "Copilot.ActionResults.FixSqlError.FailedDescription": "The fix could not be generated: {message}",
        "Copilot.ActionResults.OptimizePerformance.FailedTitle": "Could not optimize the SQL",
        "Copilot.ActionResults.OptimizePerformance.FailedDescription": "The optimization could not be generated: {message}",
        "Copilot.ActionResults.RewriteSql.FailedTitle": "Could not rewrite the SQL",
        "Copilot.ActionResults.RewriteSql.FailedDescription": "The rewrite could not be generated: {message}",
        "Copilot.ActionResults.ToAggregation.FailedTitle": "Could not build an aggregation",
        "Copilot.ActionResults.ToAggregation.FailedDescription": "The aggregation could not be generated: {message}",
    },
}


def make_translator(locale: str = DEFAULT_LOCALE) -> Translator:
    """Return a translate function bound to one locale.

    Unknown locales fall back to English; unknown keys render as the key
    itself so a missing entry is visible rather than fatal.
    """
    catalog = MESSAGES.get(locale)
    if catalog is None:
        logger.warning("No message catalog for locale %s, using %s", locale, DEFAULT_LOCALE)
        catalog = MESSAGES[DEFAULT_LOCALE]

    def translate(key: str, **values: object) -> str:
        template = catalog.get(key, key)
        if not values:
            return template
        try:
            return template.format(**values)
        except (KeyError, IndexError):
            return template

    return translate


translate = make_translator()
