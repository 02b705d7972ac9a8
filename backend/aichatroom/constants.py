"""Constants shared across the AI chatroom backend."""

from __future__ import annotations

from typing import Final

# Request defaults, identical for the streaming and non-streaming paths
DEFAULT_MAX_TOKENS: Final[int] = 2000
DEFAULT_TEMPERATURE: Final[float] = 0.7

# Retry policy
DEFAULT_MAX_RETRIES: Final[int] = 3
DEFAULT_BASE_DELAY: Final[float] = 1.0  # seconds
RETRYABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503})

# Seconds per provider API call; timeouts surface as AIErrorCode.TIMEOUT
DEFAULT_API_TIMEOUT: Final[float] = 120.0

# Environment variable names for provider credentials
OPENAI_API_KEY_ENV: Final[str] = "OPENAI_API_KEY"
ANTHROPIC_API_KEY_ENV: Final[str] = "ANTHROPIC_API_KEY"
XAI_API_KEY_ENV: Final[str] = "XAI_API_KEY"

LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
