"""Client factory for the sqlcopilot CLI.

CLI commands never build clients directly; the factory applies the loaded
configuration (base URL, API key, timeouts, locale, action model) so every
command talks to the same endpoint the same way.
"""

from src.actions.client import QuickActionClient
from src.actions.executor import QuickActionExecutor
from src.actions.llm import LLMJsonRunner
from src.chat.store_client import SessionStoreClient
from src.chat.stream_client import ChatStreamClient
from src.cli.config import CopilotConfig
from src.copilot.i18n import Translator, make_translator


def get_translator(config: CopilotConfig) -> Translator:
    return make_translator(config.locale)


def get_store_client(config: CopilotConfig, base_url: str | None = None) -> SessionStoreClient:
    """Session store client for the configured API.

    Args:
        config: Loaded configuration.
        base_url: Override for config.api.base_url.
    """
    return SessionStoreClient(
        base_url=base_url or config.api.base_url,
        api_key=config.api.api_key,
        timeout=config.api.timeout,
        translate=get_translator(config),
    )


def get_stream_client(config: CopilotConfig, base_url: str | None = None) -> ChatStreamClient:
    return ChatStreamClient(
        base_url=base_url or config.api.base_url,
        api_key=config.api.api_key,
        timeout=config.api.stream_timeout,
        translate=get_translator(config),
    )


def get_action_client(config: CopilotConfig, base_url: str | None = None) -> QuickActionClient:
    return QuickActionClient(
        base_url=base_url or config.api.base_url,
        api_key=config.api.api_key,
        translate=get_translator(config),
    )


def get_action_executor(config: CopilotConfig) -> QuickActionExecutor:
    """Local quick action executor using the configured model."""
    translate = get_translator(config)
    runner = LLMJsonRunner(
        model=config.actions.model,
        max_tokens=config.actions.max_tokens,
        translate=translate,
    )
    return QuickActionExecutor(llm=runner, translate=translate, max_retries=config.actions.max_retries)
