import logging
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional
from functools import wraps

from sqlalchemy.exc import OperationalError

from db import get_db_session, session_commit, session_rollback
from utils.time_utils import utcnow

logger = logging.getLogger(__name__)

# Substrings of driver messages that mark an error as transient
TRANSIENT_ERROR_MARKERS = (
    "database is locked",
    "database table is locked",
    "could not serialize access",
    "deadlock detected",
    "lock wait timeout",
    "try restarting transaction",
)


def is_transient_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


class TransactionManager:
    """
    Utility class for running units of work in one database transaction,
    with rollback on error and retry of transient failures.
    """

    # Transaction timeout in seconds (only logged)
    TRANSACTION_TIMEOUT = 30

    # Retry configuration
    MAX_RETRIES = 3
    RETRY_DELAY_BASE = 0.1  # Base delay in seconds

    @staticmethod
    @asynccontextmanager
    async def atomic_transaction(timeout: Optional[int] = None) -> AsyncGenerator[Any, None]:
        """
        Context manager for atomic database transactions.

        Usage:
            async with TransactionManager.atomic_transaction() as session:
                await InventoryRepository.reserve(variant_id, qty, session)
                ...
            # committed here, rolled back if the block raised
        """
        timeout = timeout or TransactionManager.TRANSACTION_TIMEOUT

        async with get_db_session() as session:
            transaction_start = utcnow()
            try:
                yield session

                duration = (utcnow() - transaction_start).total_seconds()
                if duration > timeout:
                    logger.warning(f"Transaction exceeded timeout: {duration}s > {timeout}s")

                await session_commit(session)
                logger.debug(f"Transaction committed successfully in {duration:.2f}s")
            except Exception as e:
                try:
                    await session_rollback(session)
                    logger.info(f"Transaction rolled back due to error: {str(e)}")
                except Exception as rollback_error:
                    logger.critical(f"Failed to rollback transaction: {str(rollback_error)}")
                raise

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None):
        """
        Decorator for automatic retry of database operations with exponential backoff.

        Only transient OperationalErrors (locked database, serialization failure,
        deadlock) are retried. The decorated function must open its own transaction
        so every attempt starts from a clean session.

        Args:
            max_retries: Maximum number of retry attempts
            delay_base: Base delay for exponential backoff
        """
        max_retries = max_retries or TransactionManager.MAX_RETRIES
        delay_base = delay_base or TransactionManager.RETRY_DELAY_BASE

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except OperationalError as e:
                        if not is_transient_error(e):
                            raise

                        if attempt == max_retries:
                            logger.error(f"Function {func.__name__} failed after {max_retries} retries: {str(e)}")
                            raise

                        # Exponential backoff with jitter
                        delay = delay_base * (2 ** attempt) + (delay_base * 0.1 * attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, retrying in {delay:.2f}s: {str(e)}")
                        await asyncio.sleep(delay)

            return wrapper
        return decorator
