"""Notification sink for user-visible chat messages.

The lifecycle and thread controllers report every recoverable failure exactly
once through a Notifier. Presentation layers supply their own (a toast, a
status bar); the default writes to the log.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

NoticeLevel = Literal["error", "info", "success"]


class Notifier(Protocol):
    """Receives localized, user-facing notices."""

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes notices to the module logger."""

    def error(self, message: str) -> None:
        logger.warning("%s", message)

    def info(self, message: str) -> None:
        logger.info("%s", message)

    def success(self, message: str) -> None:
        logger.info("%s", message)


@dataclass
class RecordingNotifier:
    """Notifier that keeps every notice in order; used by the CLI and tests."""

    notices: list[tuple[NoticeLevel, str]] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.notices.append(("error", message))

    def info(self, message: str) -> None:
        self.notices.append(("info", message))

    def success(self, message: str) -> None:
        self.notices.append(("success", message))

    @property
    def errors(self) -> list[str]:
        return [message for level, message in self.notices if level == "error"]
