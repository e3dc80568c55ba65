"""Error code registry with E-XXXX format codes.

This module defines the error code system for the SQL copilot, organizing
errors into categories:
- E-1xxx: Not-found errors (session missing from the local cache)
- E-2xxx: Validation errors (rejected before any network call)
- E-3xxx: Transport errors (session store / chat stream / action endpoint)
- E-4xxx: System and configuration errors
- E-6xxx: Quick action errors

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    NOT_FOUND = "not_found"  # E-1xxx
    VALIDATION = "validation"  # E-2xxx
    TRANSPORT = "transport"  # E-3xxx
    SYSTEM = "system"  # E-4xxx
    ACTION = "action"  # E-6xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Not-found errors (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.NOT_FOUND,
        title="Session Not Found",
        message_template="Session '{session_id}' is not in the current session list.",
        remediation="Refresh the session list and try again.",
    ),
    # Validation errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.VALIDATION,
        title="Session Title Required",
        message_template="A session title cannot be empty.",
        remediation="Enter a non-blank title.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.VALIDATION,
        title="Unsupported In Copilot Mode",
        message_template="'{operation}' is not available for copilot sessions.",
        remediation="Copilot sessions are managed per editor tab; switch to global chat.",
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.VALIDATION,
        title="Unsupported Envelope Surface",
        message_template="Surface '{surface}' is not supported here.",
        remediation="Open a SQL editor tab and retry.",
    ),
    "E-2004": ErrorCode(
        code="E-2004",
        category=ErrorCategory.VALIDATION,
        title="No Session Selected",
        message_template="No chat session is selected.",
        remediation="Select or create a session before sending a message.",
    ),
    # Transport errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.TRANSPORT,
        title="Session Store Request Failed",
        message_template="{message}",
        remediation="Check the workbench server and retry.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.TRANSPORT,
        title="Chat Stream Failed",
        message_template="{message}",
        remediation="Resend the message.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.TRANSPORT,
        title="Malformed Response",
        message_template="The server returned a response that could not be parsed.",
        remediation="Check the workbench server version and retry.",
    ),
    # System errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="AI Configuration Missing",
        message_template="The model provider is not configured: {detail}.",
        remediation="Set ANTHROPIC_API_KEY (and optionally ANTHROPIC_MODEL) and retry.",
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.SYSTEM,
        title="Invalid Configuration",
        message_template="Configuration is invalid: {detail}.",
        remediation="Fix the sqlcopilot.yaml file or SQLCOPILOT_* environment variables.",
    ),
    # Quick action errors (E-6xxx)
    "E-6001": ErrorCode(
        code="E-6001",
        category=ErrorCategory.ACTION,
        title="Unknown Quick Action",
        message_template="Unknown quick action '{intent}'.",
        remediation="Use one of the listed quick actions.",
    ),
    "E-6002": ErrorCode(
        code="E-6002",
        category=ErrorCategory.ACTION,
        title="Quick Action Requires Error",
        message_template="This action needs the error from the last execution.",
        remediation="Run the query first so its error can be fixed.",
    ),
    "E-6003": ErrorCode(
        code="E-6003",
        category=ErrorCategory.ACTION,
        title="Quick Action Not Applicable",
        message_template="This action does not apply to the current SQL.",
        remediation="Write or select some SQL and retry.",
    ),
    "E-6004": ErrorCode(
        code="E-6004",
        category=ErrorCategory.ACTION,
        title="Quick Action Failed",
        message_template="{message}",
        remediation="Retry the action or edit the SQL manually.",
        is_retryable=True,
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Look up error code definition.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all error codes in a category.

    Args:
        category: The error category to filter by.

    Returns:
        List of ErrorCode objects in that category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
