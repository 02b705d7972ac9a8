"""Process configuration for provider credentials and logging."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    ANTHROPIC_API_KEY_ENV,
    LOG_FORMAT,
    OPENAI_API_KEY_ENV,
    XAI_API_KEY_ENV,
)

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Provider credentials and runtime options read from the environment."""

    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    xai_api_key: Optional[str] = None
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the process environment."""
    return Settings(
        openai_api_key=os.getenv(OPENAI_API_KEY_ENV) or None,
        anthropic_api_key=os.getenv(ANTHROPIC_API_KEY_ENV) or None,
        xai_api_key=os.getenv(XAI_API_KEY_ENV) or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def validate_settings(settings: Settings) -> list[str]:
    """
    Check settings for gaps and log a warning for each.

    Missing credentials are not fatal here: adapters for a provider without
    a key fail at initialization, and callers may bring their own keys.

    Returns:
        The list of warning messages that were logged
    """
    warnings: list[str] = []

    configured = [
        key
        for key in (settings.openai_api_key, settings.anthropic_api_key, settings.xai_api_key)
        if key
    ]
    if not configured:
        warnings.append("No AI API keys configured - users must provide their own")
    else:
        if not settings.openai_api_key:
            warnings.append(f"{OPENAI_API_KEY_ENV} not set, OpenAI models will be unavailable")
        if not settings.anthropic_api_key:
            warnings.append(f"{ANTHROPIC_API_KEY_ENV} not set, Claude models will be unavailable")
        if not settings.xai_api_key:
            warnings.append(f"{XAI_API_KEY_ENV} not set, Grok models will be unavailable")

    if not isinstance(logging.getLevelName(settings.log_level), int):
        warnings.append(f"Unknown LOG_LEVEL {settings.log_level!r}, falling back to INFO")

    for warning in warnings:
        logger.warning(warning)
    return warnings


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with the backend's standard format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # Keep SDK transport chatter out of application logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
