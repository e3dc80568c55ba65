"""Error handling framework for the SQL copilot.

This package provides:
- Error code registry with E-XXXX format codes
- CopilotError for coded, user-facing failures
- Typed domain exceptions for validation and not-found cases

Error categories:
- E-1xxx: Not-found errors
- E-2xxx: Validation errors
- E-3xxx: Transport errors
- E-4xxx: System/configuration errors
- E-6xxx: Quick action errors
"""

from src.errors.domain import (
    ActionNotApplicableError,
    ActionRequiresErrorError,
    DomainError,
    MissingAIConfigError,
    NoSessionSelectedError,
    NotFoundError,
    QuickActionError,
    SessionNotFoundError,
    TitleRequiredError,
    UnknownActionError,
    UnsupportedOperationError,
    UnsupportedSurfaceError,
    ValidationError,
)
from src.errors.formatter import CopilotError, format_error
from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Formatter
    "CopilotError",
    "format_error",
    # Domain
    "DomainError",
    "ValidationError",
    "TitleRequiredError",
    "UnsupportedOperationError",
    "UnsupportedSurfaceError",
    "NoSessionSelectedError",
    "NotFoundError",
    "SessionNotFoundError",
    "QuickActionError",
    "UnknownActionError",
    "ActionRequiresErrorError",
    "ActionNotApplicableError",
    "MissingAIConfigError",
]
