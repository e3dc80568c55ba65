"""Root-level pytest fixtures for all tests.

Provides shared fixtures:
- Environment isolation for SQLCOPILOT_* overrides
- Common session and message payloads in wire format
"""

import logging
import os

import pytest

from src.chat.notifications import RecordingNotifier


# ============================================================================
# Pytest Markers
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )


# ============================================================================
# Skip Conditions
# ============================================================================

requires_anthropic_key = pytest.mark.skipif(
    not os.environ.get("ANTHROPIC_API_KEY"),
    reason="ANTHROPIC_API_KEY not set"
)


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_copilot_env(monkeypatch):
    """Keep developer SQLCOPILOT_* settings out of every test."""
    for key in list(os.environ):
        if key.startswith("SQLCOPILOT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_src_logging():
    """Detach handlers added by configure_logging() during a test."""
    yield
    src_logger = logging.getLogger("src")
    for handler in list(src_logger.handlers):
        src_logger.removeHandler(handler)
        handler.close()
    src_logger.setLevel(logging.NOTSET)


# ============================================================================
# Data Fixtures
# ============================================================================


@pytest.fixture
def make_session():
    """Factory for ChatSession payloads in wire format."""

    def _make(session_id: str, title: str | None = None, **extra) -> dict:
        data = {
            "id": session_id,
            "type": "global",
            "title": title,
            "createdAt": "2026-01-05T10:00:00Z",
            "updatedAt": "2026-01-05T10:00:00Z",
        }
        data.update(extra)
        return data

    return _make


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Notifier that records notices for assertions."""
    return RecordingNotifier()
