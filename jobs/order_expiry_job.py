"""Order Expiry Job

Cancels Paystack orders that stayed unpaid for longer than
ORDER_TIMEOUT_MINUTES and releases the stock they were holding.

Runs every ORDER_EXPIRY_CHECK_INTERVAL_SECONDS as a background task of the
web application.
"""

import asyncio
import logging
from datetime import timedelta

import config
from db import get_db_session
from services.order import OrderService
from utils.time_utils import utcnow


logger = logging.getLogger(__name__)


async def run_expiry_cycle() -> int:
    """Expire every stale unpaid order once.

    Returns:
        Number of orders cancelled
    """
    cutoff = utcnow() - timedelta(minutes=config.ORDER_TIMEOUT_MINUTES)
    async with get_db_session() as session:
        return await OrderService.expire_stale_orders(cutoff, session)


async def order_expiry_scheduler():
    """Scheduler that runs expiry cycles at configured intervals.

    This function runs indefinitely and should be started as a background task.
    """
    if not config.ORDER_EXPIRY_ENABLED:
        logger.info("[Order Expiry] Scheduler disabled")
        return

    logger.info(
        f"[Order Expiry] Scheduler started "
        f"(timeout: {config.ORDER_TIMEOUT_MINUTES} min, "
        f"interval: {config.ORDER_EXPIRY_CHECK_INTERVAL_SECONDS}s)"
    )

    while True:
        try:
            await run_expiry_cycle()
            await asyncio.sleep(config.ORDER_EXPIRY_CHECK_INTERVAL_SECONDS)

        except asyncio.CancelledError:
            logger.info("[Order Expiry] Scheduler stopped")
            break
        except Exception as e:
            logger.error(f"[Order Expiry] Scheduler error: {e}", exc_info=True)
            # Wait before retrying on error
            await asyncio.sleep(config.ORDER_EXPIRY_CHECK_INTERVAL_SECONDS)
