"""Secret redaction for config display, logs and surfaced server messages.

Keys are matched case-insensitively by substring. Free-text messages
returned by the workbench API are scrubbed of key=value style secrets and
bounded in length before they are shown to a user or logged.
"""

import re

_SENSITIVE_KEY_PATTERNS = frozenset({
    "api_key", "apikey", "x-api-key", "authorization", "password",
    "secret", "token", "credential",
})

# Keys whose entire value is redacted, whatever its type
_CONTAINER_KEYS = frozenset({"headers", "credentials"})

REDACTED = "***REDACTED***"

_SENSITIVE_KEYWORDS = r"api[_-]?key|x-api-key|authorization|password|secret|token|credential"
_SENSITIVE_VALUE_PATTERN = re.compile(
    r"(?i)(?:"
    r"Authorization\s*:\s*Bearer\s+\S+"
    r'|"(?:' + _SENSITIVE_KEYWORDS + r')"\s*:\s*"[^"]*"'
    r"|(?:" + _SENSITIVE_KEYWORDS + r")\s*[=:]\s*\"[^\"]*\""
    r"|(?:" + _SENSITIVE_KEYWORDS + r")\s*[=:]\s*\S+"
    r")"
)


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in _SENSITIVE_KEY_PATTERNS)


def redact_for_logging(obj: dict) -> dict:
    """Copy of obj with sensitive values replaced by REDACTED.

    None values are kept as None so an unset secret stays visibly unset.
    Nested dicts and lists of dicts are handled recursively.
    """
    result = {}
    for key, value in obj.items():
        if value is not None and (key.lower() in _CONTAINER_KEYS or _is_sensitive_key(key)):
            result[key] = REDACTED
        elif isinstance(value, dict):
            result[key] = redact_for_logging(value)
        elif isinstance(value, list):
            result[key] = [
                redact_for_logging(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def sanitize_error_message(msg: str | None, max_length: int = 500) -> str | None:
    """Scrub secrets from a free-text message and bound its length.

    Args:
        msg: Message to sanitize (None passes through).
        max_length: Maximum length of the result.

    Returns:
        Sanitized message, or None.
    """
    if msg is None:
        return None
    sanitized = _SENSITIVE_VALUE_PATTERN.sub(REDACTED, msg)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length - 3] + "..."
    return sanitized
