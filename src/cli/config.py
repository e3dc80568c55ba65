"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./sqlcopilot.yaml (working directory)
3. ~/.sqlcopilot/config.yaml (user home)

Environment variables override YAML: SQLCOPILOT_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from src.actions.llm import DEFAULT_MAX_TOKENS, get_model
from src.chat.store_client import DEFAULT_BASE_URL
from src.copilot.envelope import DEFAULT_MAX_EDITOR_TEXT_LENGTH, TRUNCATION_MARKER

logger = logging.getLogger(__name__)

ENV_PREFIX = "SQLCOPILOT_"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Args:
        value: String potentially containing ${VAR} references.

    Returns:
        String with all ${VAR} references replaced by their env values.
        Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    """Recursively resolve ${VAR} references in a nested data structure."""
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ApiConfig(BaseModel):
    """Workbench API endpoint used for sessions, chat and remote actions."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    timeout: float = 30.0
    # None: a chat stream is bounded only by cancellation
    stream_timeout: float | None = None


class PromptConfig(BaseModel):
    """Bounds on the prompt context sent with each chat message."""

    max_editor_text_length: int = DEFAULT_MAX_EDITOR_TEXT_LENGTH
    truncation_marker: str = TRUNCATION_MARKER

    @model_validator(mode="after")
    def limit_fits_marker(self) -> "PromptConfig":
        """Ensure a truncated draft can hold the marker."""
        if self.max_editor_text_length <= len(self.truncation_marker):
            raise ValueError(
                "max_editor_text_length must be longer than the truncation marker"
            )
        return self


class ActionsConfig(BaseModel):
    """Model-backed quick action settings."""

    model: str = Field(default_factory=get_model)
    max_retries: int = 1
    max_tokens: int = DEFAULT_MAX_TOKENS


class LoggingConfig(BaseModel):
    level: str = "info"
    format: Literal["text", "json"] = "text"
    file: str | None = None


class CopilotConfig(BaseModel):
    """Top-level configuration for the SQL copilot."""

    api: ApiConfig = ApiConfig()
    prompt: PromptConfig = PromptConfig()
    actions: ActionsConfig = ActionsConfig()
    logging: LoggingConfig = LoggingConfig()
    locale: str = "en"


def _find_config_file() -> Path | None:
    """Search for config file in standard locations.

    Returns:
        Path to config file if found, None otherwise.
    """
    candidates = [
        Path.cwd() / "sqlcopilot.yaml",
        Path.cwd() / "sqlcopilot.yml",
        Path.home() / ".sqlcopilot" / "config.yaml",
        Path.home() / ".sqlcopilot" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply SQLCOPILOT_<SECTION>_<KEY> env var overrides to config data.

    Sections are matched by longest prefix. Top-level scalar fields such as
    ``locale`` are overridden by SQLCOPILOT_<FIELD>.

    Args:
        data: Parsed YAML config dict.

    Returns:
        Config dict with env var overrides applied.
    """
    fields = CopilotConfig.model_fields
    sections = sorted(
        (name for name, info in fields.items() if isinstance(info.default, BaseModel)),
        key=len, reverse=True,
    )
    scalars = {name for name in fields if name not in sections}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        suffix = key[len(ENV_PREFIX):].lower()  # e.g. "api_base_url"
        if suffix in scalars:
            data[suffix] = value
            continue
        matched_section = None
        matched_field = None
        for section in sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if not isinstance(data.get(matched_section), dict):
            data[matched_section] = {}
        # pydantic coerces the string to the field type
        data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> CopilotConfig | None:
    """Load configuration from YAML file with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.sqlcopilot/).

    Returns:
        Parsed and validated CopilotConfig, or None if no config found.

    Raises:
        FileNotFoundError: If config_path is given but does not exist.
        pydantic.ValidationError: If the file content is invalid.
    """
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()
        if path is None:
            return None

    logger.info("Loading config from %s", path)

    with open(path) as f:
        raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return CopilotConfig(**data)


def get_config(config_path: str | None = None) -> CopilotConfig:
    """Load configuration, falling back to defaults plus env overrides."""
    config = load_config(config_path)
    if config is not None:
        return config
    return CopilotConfig(**_apply_env_overrides({}))
