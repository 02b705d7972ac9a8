"""Unified error taxonomy for provider failures."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Iterable, Optional

import httpx

from ..constants import RETRYABLE_STATUS_CODES


class AIErrorCode(str, Enum):
    INVALID_API_KEY = "invalid_api_key"
    INSUFFICIENT_QUOTA = "insufficient_quota"
    INVALID_REQUEST = "invalid_request"
    CONTENT_FILTERED = "content_filtered"
    CONTEXT_TOO_LONG = "context_too_long"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    UNKNOWN_ERROR = "unknown_error"

    @property
    def retryable(self) -> bool:
        """Whether failures of this kind are transient by default."""
        return self in _RETRYABLE_CODES


_RETRYABLE_CODES = frozenset(
    {
        AIErrorCode.RATE_LIMIT_EXCEEDED,
        AIErrorCode.SERVICE_UNAVAILABLE,
        AIErrorCode.TIMEOUT,
        AIErrorCode.NETWORK_ERROR,
    }
)

# Provider error types that mean the service itself is struggling
SERVICE_UNAVAILABLE_ERROR_TYPES = frozenset({"overloaded_error", "api_error"})


class AIError(Exception):
    """A provider failure normalized into the unified taxonomy.

    Attributes:
        message: Human-readable error description
        code: Taxonomy code
        status_code: HTTP status returned by the provider, if any
        retryable: Whether the retry wrapper may re-attempt the call
        provider: Provider family that raised the failure
        original_error: The provider-native exception, for diagnostics
    """

    def __init__(
        self,
        message: str,
        code: AIErrorCode,
        *,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
        provider: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.retryable = code.retryable if retryable is None else retryable
        self.provider = provider
        self.original_error = original_error
        if original_error is not None:
            self.__cause__ = original_error

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.insert(0, f"[{self.provider}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code.value,
            "status_code": self.status_code,
            "retryable": self.retryable,
            "provider": self.provider,
        }


class ModelNotFoundError(ValueError):
    """Raised when a model identifier has no registered adapter factory."""

    def __init__(self, model_id: str, available: Iterable[str] = ()) -> None:
        available_list = ", ".join(available) or "none"
        super().__init__(f"AI model adapter not found: {model_id}. Available: {available_list}")
        self.model_id = model_id


def get_status_code(exc: BaseException) -> Optional[int]:
    """Return the HTTP status carried by a provider exception, if any.

    Success statuses are ignored: an error event inside a streamed 200
    response carries the stream's status, not a failure status.
    """
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    if isinstance(status, int) and status >= 400:
        return status
    return None


def get_error_code(exc: BaseException) -> Optional[str]:
    """Return the provider's machine-readable error code, if any.

    Looks at the exception's ``code`` attribute first, then at the parsed
    error body (either the bare error object or one wrapped in ``error``).
    """
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return code
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        inner = body.get("error")
        if isinstance(inner, dict):
            body = inner
        code = body.get("code") or body.get("type")
        if isinstance(code, str):
            return code
    return None


def is_timeout(exc: BaseException, timeout_errors: tuple[type[BaseException], ...] = ()) -> bool:
    return isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException, *timeout_errors))


def is_retryable(exc: BaseException) -> bool:
    """Classify a failure as transient.

    Normalized errors carry their own flag. Anything else is retryable when
    it has a 429/500/502/503 status or is a timeout.
    """
    if isinstance(exc, AIError):
        return exc.retryable
    status = get_status_code(exc)
    if status is not None:
        return status in RETRYABLE_STATUS_CODES
    return is_timeout(exc)


def normalize_error(
    exc: BaseException,
    provider: str,
    *,
    timeout_errors: tuple[type[BaseException], ...] = (),
    is_context_length: Callable[[BaseException], bool] = lambda exc: False,
) -> AIError:
    """Map a provider-native exception onto the unified taxonomy.

    Args:
        exc: The exception raised by the provider SDK
        provider: Provider family name, recorded on the error
        timeout_errors: SDK exception types that signal a client-side timeout
        is_context_length: Predicate recognizing the provider's
            context-window error on a 400 response

    Returns:
        An AIError; ``exc`` itself when it is already normalized
    """
    if isinstance(exc, AIError):
        return exc

    status = get_status_code(exc)
    if status is not None:
        if status == 401:
            return AIError(
                f"{provider} API key is invalid or expired",
                AIErrorCode.INVALID_API_KEY,
                status_code=status,
                provider=provider,
                original_error=exc,
            )
        if status == 429:
            return AIError(
                "Rate limit exceeded, please retry later",
                AIErrorCode.RATE_LIMIT_EXCEEDED,
                status_code=status,
                provider=provider,
                original_error=exc,
            )
        if status == 400:
            if is_context_length(exc):
                return AIError(
                    "Context length exceeded limit",
                    AIErrorCode.CONTEXT_TOO_LONG,
                    status_code=status,
                    provider=provider,
                    original_error=exc,
                )
            return AIError(
                "Invalid request parameters",
                AIErrorCode.INVALID_REQUEST,
                status_code=status,
                provider=provider,
                original_error=exc,
            )
        if status in (500, 502, 503):
            return AIError(
                f"{provider} service temporarily unavailable",
                AIErrorCode.SERVICE_UNAVAILABLE,
                status_code=status,
                provider=provider,
                original_error=exc,
            )
        return AIError(
            f"Unknown error: {exc}",
            AIErrorCode.UNKNOWN_ERROR,
            status_code=status,
            provider=provider,
            original_error=exc,
        )

    if is_timeout(exc, timeout_errors):
        return AIError(
            "Request timeout",
            AIErrorCode.TIMEOUT,
            provider=provider,
            original_error=exc,
        )

    error_type = get_error_code(exc)
    if error_type in SERVICE_UNAVAILABLE_ERROR_TYPES:
        return AIError(
            f"{provider} service temporarily unavailable",
            AIErrorCode.SERVICE_UNAVAILABLE,
            provider=provider,
            original_error=exc,
        )
    if error_type is not None:
        return AIError(
            f"Unknown error: {exc}",
            AIErrorCode.UNKNOWN_ERROR,
            provider=provider,
            original_error=exc,
        )

    return AIError(
        f"Network error: {exc}",
        AIErrorCode.NETWORK_ERROR,
        provider=provider,
        original_error=exc,
    )
