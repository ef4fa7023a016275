"""Retry with exponential backoff and jitter for calls to external APIs"""
import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from google.genai import errors as genai_errors

from config import RETRY_INITIAL_DELAY, RETRY_MAX_RETRIES
from services.errors import GenerativeCapacityError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERVICE_UNAVAILABLE_MARKERS = ("503", "Service Unavailable")
TRANSIENT_MARKERS = ("503", "UNAVAILABLE", "overloaded")


def backoff_delay(attempt: int, initial_delay: float = RETRY_INITIAL_DELAY) -> float:
    """Base delay before retry number ``attempt + 1`` (no jitter)"""
    return initial_delay * (2 ** attempt)


def is_service_unavailable(error: BaseException) -> bool:
    message = str(error)
    return any(marker in message for marker in SERVICE_UNAVAILABLE_MARKERS)


def is_transient_error(error: BaseException) -> bool:
    """Classify an error raised by a Gemini call as worth retrying"""
    if isinstance(error, genai_errors.ServerError):
        return True
    if isinstance(error, genai_errors.ClientError):
        # Rate limiting is the only client error that can clear up on its own
        return error.code == 429
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError, ConnectionError)):
        return True
    message = str(error)
    return any(marker in message for marker in TRANSIENT_MARKERS)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = RETRY_MAX_RETRIES,
    initial_delay: float = RETRY_INITIAL_DELAY,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds, retrying up to ``max_retries`` times.

    Each retry waits ``initial_delay * 2**attempt`` seconds plus a uniform jitter in
    ``[0, delay)``. Without ``should_retry`` every error is retried, so callers talking
    to a real API should pass a classifier such as ``is_transient_error``.

    Once retries are exhausted (or the error is not retryable) the error is re-raised,
    except that a service-unavailable error is replaced by ``GenerativeCapacityError``.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            retryable = should_retry(e) if should_retry else True
            if attempt >= max_retries or not retryable:
                logger.error(
                    f"{label} failed on attempt {attempt + 1}, no more retries "
                    f"(retryable={retryable}): {e}"
                )
                if is_service_unavailable(e):
                    raise GenerativeCapacityError() from e
                raise

            delay = backoff_delay(attempt, initial_delay)
            total_delay = delay + random.random() * delay
            logger.warning(
                f"{label} attempt {attempt + 1} failed. Retrying in {total_delay:.2f}s... Error: {e}"
            )
            await sleep(total_delay)
            attempt += 1
