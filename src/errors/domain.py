"""Typed domain exceptions raised by the session and thread core.

These are the validation and not-found errors of the copilot core. They are
raised before any network call is made and are always user-facing, so each
carries the (already localized) message it was built with plus an E-XXXX
code from the registry.

Usage:
    # In the lifecycle manager
    raise SessionNotFoundError(session_id, message=translate("Errors.SessionNotFoundRename"))

    # In a caller
    try:
        await lifecycle.request_rename(session_id)
    except DomainError as e:
        console.print(f"[red]{e}[/red]")
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    code = "E-2000"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Input rejected before any request was made."""


class TitleRequiredError(ValidationError):
    """Rename submitted with a blank title."""

    code = "E-2001"


class UnsupportedOperationError(ValidationError):
    """Operation is not available for the active chat mode."""

    code = "E-2002"

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


class NoSessionSelectedError(ValidationError):
    """An operation needed a selected session and none was bound."""

    code = "E-2004"


class NotFoundError(DomainError):
    """Resource was not found."""

    code = "E-1000"

    def __init__(self, resource_type: str, identifier: str, message: str | None = None) -> None:
        super().__init__(message or f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class SessionNotFoundError(NotFoundError):
    """Session is absent from the local session list."""

    code = "E-1001"

    def __init__(self, session_id: str, message: str | None = None) -> None:
        super().__init__("Session", session_id, message)
        self.session_id = session_id


class QuickActionError(DomainError):
    """A quick action could not be run.

    Attributes:
        server_code: Error code reported by a remote action endpoint.
        status_code: HTTP status of a remote failure.
    """

    code = "E-6004"

    def __init__(
        self,
        message: str,
        server_code: str | int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.server_code = server_code
        self.status_code = status_code


class UnknownActionError(QuickActionError):
    """No quick action is registered for the intent."""

    code = "E-6001"

    def __init__(self, intent: str, message: str) -> None:
        super().__init__(message)
        self.intent = intent


class ActionRequiresErrorError(QuickActionError):
    """The action needs the error of the last execution and there is none."""

    code = "E-6002"


class ActionNotApplicableError(QuickActionError):
    """The action's applicability check failed for the given SQL."""

    code = "E-6003"


class MissingAIConfigError(QuickActionError):
    """The model-backed path has no API key or endpoint configured.

    Always propagated unchanged; never degraded into a fallback result.
    """

    code = "E-4001"


class UnsupportedSurfaceError(ValidationError, QuickActionError):
    """Envelope surface is not accepted by the operation."""

    code = "E-2003"

    def __init__(self, surface: str, message: str) -> None:
        super().__init__(message)
        self.surface = surface
