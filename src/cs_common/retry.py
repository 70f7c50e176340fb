"""Bounded retry of a whole serialized unit of work on transient DB contention.

The operation passed in owns its locks and its transaction (it commits or
rolls back before returning), so every attempt starts from a clean session
and no lock is held while backing off.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError

from src.cs_common.database import is_retryable_db_error
from src.cs_common.errors import ConflictError, PersistenceFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_db_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    backoff_seconds: float,
    label: str,
) -> T:
    """Run ``operation``; retry serialization/deadlock/lock-timeout failures.

    After ``max_retries`` retries the failure surfaces as ConflictError.
    Any other driver error becomes PersistenceFailureError. Application
    errors propagate untouched and are never retried.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except DBAPIError as exc:
            if not is_retryable_db_error(exc):
                logger.exception("%s failed in the database", label)
                raise PersistenceFailureError() from exc
            if attempt >= max_retries:
                logger.warning("%s gave up after %d retries", label, attempt)
                raise ConflictError() from exc
            attempt += 1
            logger.warning("%s hit contention, retry %d/%d", label, attempt, max_retries)
            await asyncio.sleep(backoff_seconds * attempt)
