"""Process configuration read from the environment.

A `.env` file at the repo root is loaded first (python-dotenv), then values
are read from os.environ. Only the API key is required; everything else has
a default.

    GEMINI_API_KEY   (or API_KEY)  required
    GEMINI_BASE_URL  default https://generativelanguage.googleapis.com/v1beta
    ADVENTURE_MODEL  default gemini-flash-lite-latest
    IMAGE_MODEL      default imagen-4.0-generate-001
    CHAT_MODEL       default gemini-2.5-flash
    GENAI_TIMEOUT    seconds, default 120
    LOG_LEVEL        default INFO
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent.parent

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_ADVENTURE_MODEL = "gemini-flash-lite-latest"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_CHAT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 120.0


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    adventure_model: str = DEFAULT_ADVENTURE_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from the environment. Raises ConfigError without an API key."""
    load_dotenv(env_file or ROOT / ".env")

    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
    if not api_key.strip():
        raise ConfigError("GEMINI_API_KEY environment variable is not set")

    raw_timeout = os.getenv("GENAI_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(raw_timeout)
    except ValueError as e:
        raise ConfigError(f"GENAI_TIMEOUT must be a number, got {raw_timeout!r}") from e

    return Settings(
        api_key=api_key.strip(),
        base_url=os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
        adventure_model=os.getenv("ADVENTURE_MODEL", DEFAULT_ADVENTURE_MODEL),
        image_model=os.getenv("IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
        chat_model=os.getenv("CHAT_MODEL", DEFAULT_CHAT_MODEL),
        timeout=timeout,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
