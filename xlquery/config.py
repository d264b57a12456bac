"""
Runtime configuration.

Settings come from environment variables, optionally seeded from a .env
file in the working directory (existing variables are never overridden).

Example:
    settings = load_settings()
    upload_dir = settings.upload_dir
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_UPLOAD_DIR = "/data/xlquery/chat/file"
DEFAULT_MODEL = "gpt-4o-mini"


class ConfigError(Exception):
    """Raised when a configuration value is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """
    Immutable application settings.

    Attributes:
        upload_dir: Directory where uploaded workbooks are stored.
        api_key: Chat-completion API key; empty disables the chat endpoint.
        base_url: Optional OpenAI-compatible endpoint.
        model: Chat model identifier.
        max_tool_rounds: Upper bound of tool-calling round trips per chat call.
        log_level: Level for the "xlquery" logger.
        host: HTTP bind address.
        port: HTTP port.
    """

    upload_dir: Path = Path(DEFAULT_UPLOAD_DIR)
    api_key: str = ""
    base_url: str = ""
    model: str = DEFAULT_MODEL
    max_tool_rounds: int = 8
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def chat_enabled(self) -> bool:
        return bool(self.api_key)


def load_runtime_env() -> None:
    """Load ./.env without overriding variables already set."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)


def _parse_positive_int(value: str | None, name: str, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        result = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if result <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {result}")
    return result


def _parse_log_level(value: str | None) -> str:
    if value is None or value.strip() == "":
        return "INFO"
    normalized = value.strip().upper()
    if normalized not in _ALLOWED_LOG_LEVELS:
        raise ConfigError(
            f"XLQUERY_LOG_LEVEL must be one of {sorted(_ALLOWED_LOG_LEVELS)}, got {value!r}"
        )
    return normalized


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Returns:
        The loaded Settings.

    Raises:
        ConfigError: If a variable holds an invalid value.
    """
    load_runtime_env()

    base_url = os.environ.get("XLQUERY_BASE_URL", "").strip()
    if base_url and not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"XLQUERY_BASE_URL must be an http(s) URL, got {base_url!r}")

    return Settings(
        upload_dir=Path(os.environ.get("XLQUERY_UPLOAD_DIR") or DEFAULT_UPLOAD_DIR),
        api_key=os.environ.get("XLQUERY_API_KEY") or os.environ.get("OPENAI_API_KEY") or "",
        base_url=base_url,
        model=os.environ.get("XLQUERY_MODEL") or DEFAULT_MODEL,
        max_tool_rounds=_parse_positive_int(
            os.environ.get("XLQUERY_MAX_TOOL_ROUNDS"), "XLQUERY_MAX_TOOL_ROUNDS", 8
        ),
        log_level=_parse_log_level(os.environ.get("XLQUERY_LOG_LEVEL")),
        host=os.environ.get("XLQUERY_HOST") or "0.0.0.0",
        port=_parse_positive_int(os.environ.get("XLQUERY_PORT"), "XLQUERY_PORT", 8000),
    )
