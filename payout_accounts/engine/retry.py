"""
Provider error taxonomy and exponential backoff.

Transient provider failures (429 rate limits, 5xx) are retried; 4xx client
errors are permanent. Two flavours of retry share the same backoff curve:

  - with_retry(): in-process retries for idempotent reads on the request path
  - backoff_delay(): the delay the outbox worker persists between job attempts
"""

import asyncio
import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger("payout_accounts.retry")

T = TypeVar("T")

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}
MAX_RETRIES = 2
BASE_DELAY = 0.5
MAX_DELAY = 10.0


class ProviderError(Exception):
    """Base exception for payment provider errors."""

    def __init__(self, message: str, status_code: int = 500, retriable: bool = True):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retriable = retriable


class RateLimitError(ProviderError):
    """429 Too Many Requests from the payment provider."""

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None):
        super().__init__(message, status_code=429, retriable=True)
        self.retry_after = retry_after


class PermanentError(ProviderError):
    """Non-retriable error (e.g. invalid KYC, bad request)."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message, status_code=status_code, retriable=False)


def error_for_status(status_code: int, message: str, retry_after: float | None = None) -> ProviderError:
    """Classify an HTTP failure from the provider."""
    if status_code == 429:
        return RateLimitError(message, retry_after=retry_after)
    if status_code in RETRIABLE_STATUS_CODES:
        return ProviderError(message, status_code=status_code, retriable=True)
    return PermanentError(message, status_code=status_code)


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Delay before retry number `attempt` (1-based): base, 2*base, 4*base, ... capped."""
    return min(base * (2 ** max(attempt - 1, 0)), cap)


async def with_retry(
    func: Callable[..., Any],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any,
) -> Any:
    """
    Execute an async function with exponential backoff on retriable errors.

    Only use for idempotent provider calls; creating calls are retried through
    the outbox instead.

    Raises:
        ProviderError: On permanent failure or exhausted retries.
    """
    last_error = None

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except ProviderError as e:
            last_error = e
            if not e.retriable:
                raise

            if attempt < max_retries:
                sleep_for = backoff_delay(attempt + 1, BASE_DELAY, MAX_DELAY)
                if isinstance(e, RateLimitError) and e.retry_after:
                    sleep_for = min(e.retry_after, MAX_DELAY)

                logger.warning(
                    "Retriable error on attempt %d/%d: %s, sleeping %.1fs",
                    attempt + 1,
                    max_retries + 1,
                    e,
                    sleep_for,
                )
                await asyncio.sleep(sleep_for)
            else:
                logger.error("Exhausted %d retries for provider call: %s", max_retries, e)
                raise

    raise last_error or ProviderError("Unknown error after retries")
