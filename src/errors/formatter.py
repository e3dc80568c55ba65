"""Coded copilot errors and their display formatting."""

from dataclasses import dataclass, field

from src.errors.registry import get_error


@dataclass
class CopilotError(Exception):
    """Application error with code, message, and context.

    Attributes:
        code: Error code in E-XXXX format.
        message: Human-readable error message.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
        details: Additional context dictionary.
    """

    code: str
    message: str
    remediation: str = ""
    is_retryable: bool = False
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_code(cls, code: str, message: str | None = None, **kwargs: object) -> "CopilotError":
        """Create error from registry code with context substitution.

        Args:
            code: Error code in E-XXXX format.
            message: Explicit (usually localized) message. Overrides the
                registry template when given.
            **kwargs: Context values for message template substitution.
                The special key 'details' populates the details field.

        Returns:
            CopilotError instance with formatted message.
        """
        details = kwargs.pop("details", {})
        if not isinstance(details, dict):
            details = {}

        error_def = get_error(code)
        if not error_def:
            return cls(
                code=code,
                message=message or f"Unknown error: {code}",
                remediation="Contact support.",
                details=details,
            )

        if message is None:
            message = error_def.message_template
            try:
                message = message.format(**kwargs)
            except KeyError:
                # Keep template if some placeholders are missing
                pass

        return cls(
            code=error_def.code,
            message=message,
            remediation=error_def.remediation,
            is_retryable=error_def.is_retryable,
            details=details,
        )


def format_error(error: CopilotError, include_remediation: bool = True) -> str:
    """Format error for display to user.

    Args:
        error: The CopilotError to format.
        include_remediation: Whether to include remediation steps.

    Returns:
        Multi-line formatted string suitable for user display.
    """
    lines = [f"{error.code}: {error.message}"]
    if include_remediation and error.remediation:
        lines.append(f"  Action: {error.remediation}")
    return "\n".join(lines)
