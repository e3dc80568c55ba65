"""Model-backed JSON generation for quick actions.

Calls the Anthropic Messages API, extracts the outermost JSON object from the
reply text and validates it against a pydantic model. A failed attempt is
retried up to max_retries times; the last error is re-raised.

Environment Variables:
    ANTHROPIC_API_KEY: Required for the model-backed path.
    ANTHROPIC_MODEL: Model to use. Defaults to DEFAULT_MODEL.
"""

import logging
import os
from typing import TypeVar

from anthropic import Anthropic
from pydantic import BaseModel

from src.actions.prompts import SYSTEM_PROMPT
from src.copilot.i18n import Translator, translate as default_translate
from src.errors import MissingAIConfigError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 1024

T = TypeVar("T", bound=BaseModel)


def get_model() -> str:
    """Model for quick actions, from ANTHROPIC_MODEL or the default."""
    return os.environ.get("ANTHROPIC_MODEL", DEFAULT_MODEL)


def extract_json_object(text: str) -> str:
    """Return the span from the first '{' to the last '}'.

    Falls back to the stripped text when no such span exists, so the
    validation error that follows names the real reply.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return text.strip()
    return text[start:end + 1].strip()


class LLMJsonRunner:
    """Runs a prompt and validates the JSON reply."""

    def __init__(
        self,
        model: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        api_key: str | None = None,
        client: Anthropic | None = None,
        translate: Translator | None = None,
    ):
        """Initialize the runner.

        Args:
            model: Model id; defaults to get_model().
            max_tokens: Reply token limit.
            api_key: API key; defaults to ANTHROPIC_API_KEY.
            client: Pre-built Anthropic client, mainly for tests.
            translate: Localization function for the missing-config error.
        """
        self._model = model or get_model()
        self._max_tokens = max_tokens
        self._api_key = api_key
        self._client = client
        self._t = translate or default_translate

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> Anthropic:
        if self._client is not None:
            return self._client
        api_key = (self._api_key or os.environ.get("ANTHROPIC_API_KEY", "")).strip()
        if not api_key:
            raise MissingAIConfigError(
                self._t("Copilot.Errors.MissingAIConfig", detail="ANTHROPIC_API_KEY is not set"),
            )
        self._client = Anthropic(api_key=api_key)
        return self._client

    def run(
        self,
        prompt: str,
        schema: type[T],
        temperature: float = 0.0,
        max_retries: int = 1,
    ) -> T:
        """Generate and validate one JSON object.

        Args:
            prompt: User prompt.
            schema: Pydantic model the reply must satisfy.
            temperature: Sampling temperature.
            max_retries: Extra attempts after the first failure.

        Returns:
            The validated model instance.

        Raises:
            MissingAIConfigError: If no API key is configured.
            Exception: The last API or validation error after all attempts.
        """
        client = self._get_client()
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                response = client.messages.create(
                    model=self._model,
                    max_tokens=self._max_tokens,
                    system=SYSTEM_PROMPT,
                    temperature=temperature,
                    messages=[{"role": "user", "content": prompt}],
                )
                text = "".join(
                    block.text for block in response.content if getattr(block, "type", None) == "text"
                )
                return schema.model_validate_json(extract_json_object(text))
            except Exception as e:
                last_error = e
                logger.warning(
                    "Quick action generation attempt %d/%d failed: %s",
                    attempt + 1, max_retries + 1, e,
                )

        assert last_error is not None
        raise last_error


def run_llm_json(
    prompt: str,
    schema: type[T],
    temperature: float = 0.0,
    max_retries: int = 1,
) -> T:
    """Run one prompt with a runner configured from the environment."""
    return LLMJsonRunner().run(prompt, schema, temperature=temperature, max_retries=max_retries)
