"""Exponential backoff retry for async operations.

Wraps a zero-argument coroutine factory, classifies failures as
transient or permanent, and retries transient ones with capped
exponential backoff and +/-25% jitter.
"""
from __future__ import annotations

import asyncio
import errno
import random
import socket
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx
import structlog

from counsel_ai.ai.config import RetryConfig
from counsel_ai.ai.errors import GatewayError

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_RETRYABLE_ERROR_CODES = frozenset(
    {"ECONNRESET", "ETIMEDOUT", "ENOTFOUND", "ECONNREFUSED", "NETWORK_ERROR"}
)

_NETWORK_MESSAGE_HINTS = ("network", "timeout", "econnreset", "socket")

JITTER_RATIO = 0.25


@dataclass
class RetryOptions:
    """Retry policy for a single call site.

    ``on_retry`` is called with ``(error, attempt)`` after each backoff
    delay, before the next attempt.
    """

    max_attempts: int = 3
    initial_delay_ms: float = 1000
    max_delay_ms: float = 10000
    backoff_multiplier: float = 2
    retryable_error_codes: frozenset[str] = field(
        default_factory=lambda: DEFAULT_RETRYABLE_ERROR_CODES
    )
    on_retry: Callable[[Exception, int], None] | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.retryable_error_codes = frozenset(
            code.upper() for code in self.retryable_error_codes
        )

    @classmethod
    def from_config(
        cls,
        config: RetryConfig,
        on_retry: Callable[[Exception, int], None] | None = None,
    ) -> RetryOptions:
        return cls(
            max_attempts=config.max_attempts,
            initial_delay_ms=config.initial_delay_ms,
            max_delay_ms=config.max_delay_ms,
            backoff_multiplier=config.backoff_multiplier,
            retryable_error_codes=frozenset(config.retryable_error_codes),
            on_retry=on_retry,
        )


def error_code(error: BaseException) -> str | None:
    """Return a symbolic network error code (``ECONNRESET`` style) if one applies."""
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code.upper()

    if isinstance(error, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(error, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(error, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(error, OSError) and error.errno in errno.errorcode:
        return errno.errorcode[error.errno]
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return "ETIMEDOUT"
    if isinstance(error, httpx.ConnectError):
        return "ECONNREFUSED"
    if isinstance(error, httpx.NetworkError):
        return "NETWORK_ERROR"
    return None


def http_status(error: BaseException) -> int | None:
    """Extract an HTTP status code carried by an exception, if any."""
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status

    # google-genai APIError exposes the HTTP status as an integer ``code``
    code = getattr(error, "code", None)
    if isinstance(code, int) and 100 <= code <= 599:
        return code

    response = getattr(error, "response", None)
    if response is not None:
        for attr in ("status_code", "status"):
            value = getattr(response, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_retryable_error(
    error: BaseException,
    retryable_error_codes: frozenset[str] = DEFAULT_RETRYABLE_ERROR_CODES,
) -> bool:
    """Classify an error as transient (worth retrying) or permanent.

    Transient: a known network error code, HTTP 5xx, HTTP 429, or a
    message that mentions network/timeout/econnreset/socket. Any other
    HTTP status is permanent regardless of the message, and so is a
    ``GatewayError``: its message quotes the model reply.
    """
    if isinstance(error, GatewayError):
        return False

    code = error_code(error)
    if code is not None and code in retryable_error_codes:
        return True

    status = http_status(error)
    if status is not None:
        return status >= 500 or status == 429

    message = str(error).lower()
    return any(hint in message for hint in _NETWORK_MESSAGE_HINTS)


def compute_delay(
    attempt: int,
    initial_delay_ms: float,
    max_delay_ms: float,
    multiplier: float,
    rand: Callable[[], float] = random.random,
) -> float:
    """Backoff delay in milliseconds for the given 1-based attempt."""
    capped = min(initial_delay_ms * multiplier ** (attempt - 1), max_delay_ms)
    jitter = capped * JITTER_RATIO * (rand() * 2 - 1)
    return max(0.0, capped + jitter)


async def execute(
    operation: Callable[[], Awaitable[T]],
    options: RetryOptions | None = None,
    *,
    name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` with retries according to ``options``.

    Either returns the first successful result or raises the error of
    the last attempt. Non-retryable errors are raised on first failure.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt.
        options: Retry policy; defaults to ``RetryOptions()``.
        name: Operation label for log events.
        sleep: Awaitable sleep in seconds (injected in tests).
    """
    options = options or RetryOptions()
    log = logger.bind(operation=name, max_attempts=options.max_attempts)

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as error:
            retryable = is_retryable_error(error, options.retryable_error_codes)

            if not retryable:
                log.error("retry_not_retryable", attempt=attempt, error=str(error))
                raise
            if attempt >= options.max_attempts:
                log.error("retry_exhausted", attempt=attempt, error=str(error))
                raise

            delay_ms = compute_delay(
                attempt,
                options.initial_delay_ms,
                options.max_delay_ms,
                options.backoff_multiplier,
            )
            log.warning(
                "retry_attempt",
                attempt=attempt,
                delay_ms=round(delay_ms),
                error=str(error),
            )
            await sleep(delay_ms / 1000)

            if options.on_retry is not None:
                options.on_retry(error, attempt)
            attempt += 1
