"""
Stock Monitor — background low-stock scanner.

Runs periodically without user prompting:
1. Finds products whose quantity is below their par level
2. Logs them and emails the inventory recipients

It never reorders on its own; restocking stays a manual stock order.
"""
import asyncio
import logging

from medportal.core.config import settings
from medportal.db.session import SessionLocal
from medportal.services import pharmacy_service

logger = logging.getLogger(__name__)

# Let the server finish starting before the first scan
STARTUP_DELAY_SECONDS = 10

_monitor_running = False
_monitor_task = None


def scan_low_stock() -> int:
    """
    One scan. Called from the background loop in a worker thread.

    Returns:
        Number of products under par level
    """
    db = SessionLocal()
    try:
        return len(pharmacy_service.check_low_stock_and_alert(db))
    except Exception as e:
        logger.error(f"[StockMonitor] Scan error: {e}")
        return 0
    finally:
        db.close()


async def _stock_monitor_loop():
    global _monitor_running
    _monitor_running = True

    logger.info(f"[StockMonitor] Started. Interval: {settings.LOW_STOCK_SCAN_INTERVAL_SECONDS}s")
    await asyncio.sleep(STARTUP_DELAY_SECONDS)

    while _monitor_running:
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, scan_low_stock)
        except Exception as e:
            logger.error(f"[StockMonitor] Loop error: {e}")

        await asyncio.sleep(settings.LOW_STOCK_SCAN_INTERVAL_SECONDS)


def start_stock_monitor():
    """Start the background scanner. Called from FastAPI lifespan."""
    global _monitor_task
    try:
        _monitor_task = asyncio.create_task(_stock_monitor_loop())
        logger.info("[StockMonitor] Low stock monitor initialized")
    except Exception as e:
        logger.error(f"[StockMonitor] Failed to start: {e}")


def stop_stock_monitor():
    """Stop the scanner. Called from FastAPI shutdown."""
    global _monitor_running, _monitor_task
    _monitor_running = False
    if _monitor_task is not None:
        _monitor_task.cancel()
        _monitor_task = None
    logger.info("[StockMonitor] Stopped")
