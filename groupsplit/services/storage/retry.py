"""
Store Retry Policy

Reads from the expense store can fail transiently. Every caller that
fetches a snapshot goes through with_store_retry, so the whole package
shares one policy driven by StoreSettings.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from groupsplit.config import StoreSettings
from groupsplit.services.storage.interface import ConnectionError

T = TypeVar("T")


async def with_store_retry(
    operation: Callable[[], Awaitable[T]],
    settings: StoreSettings,
) -> T:
    """
    Await operation(), retrying ConnectionError with exponential backoff.

    Other StorageErrors are raised immediately. After the last attempt the
    original ConnectionError is re-raised.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(settings.max_fetch_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=settings.retry_min_wait_seconds,
            max=settings.retry_max_wait_seconds,
        ),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
