"""
Stock service - Business logic around the stock monitor.
Loads branch products from the product source, feeds them to the monitor
and answers alert queries.
"""

import asyncio
from typing import Any, Iterable, List, Optional
import logging

from stockwatch.config import settings
from stockwatch.core.events import NotificationLog
from stockwatch.core.monitor import StockMonitor, stock_monitor
from stockwatch.data.source import ProductSource
from stockwatch.models import BranchRefresh, StockAlerts, StockLevelChanged, StockStatus

logger = logging.getLogger(__name__)


class StockService:
    """
    Service layer for stock monitoring.
    Owns the active branch context and the recent notification log.
    """

    def __init__(
        self,
        monitor: Optional[StockMonitor] = None,
        source: Optional[ProductSource] = None,
        notification_log: Optional[NotificationLog] = None,
        retries: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        self.monitor = monitor if monitor is not None else stock_monitor
        self.source = source if source is not None else ProductSource()
        self.notifications = (
            notification_log if notification_log is not None
            else NotificationLog(settings.notification_log_size)
        )
        self.notifications.attach(self.monitor)

        self.retries = settings.source_retries if retries is None else retries
        self.timeout = settings.source_timeout if timeout is None else timeout
        self.active_branch_id: Optional[int] = None

    async def _load_branch_products(self, branch_id: int) -> Optional[List[Any]]:
        """
        Read a branch's products from the source, bounded by the configured timeout.

        A failed or timed out read is retried up to `self.retries` times with a
        growing pause (0.1s, 0.2s, ...) between attempts.

        Returns:
            Raw product payloads, or None when every attempt failed
        """
        attempts = self.retries + 1
        errors: List[str] = []

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                await asyncio.sleep(0.1 * (attempt - 1))
            try:
                return await asyncio.wait_for(self.source.get_products(branch_id), timeout=self.timeout)
            except asyncio.TimeoutError:
                errors.append(f"timeout after {self.timeout}s")
            except Exception as e:
                errors.append(str(e) or type(e).__name__)
            logger.warning(f"Branch {branch_id}: product read {attempt}/{attempts} failed ({errors[-1]})")

        logger.error(f"Branch {branch_id}: giving up on product source after {attempts} attempts: {'; '.join(errors)}")
        return None

    async def refresh_branch(self, branch_id: int) -> Optional[BranchRefresh]:
        """
        Reload a branch's products into the monitor and compute its alerts.

        Business Logic:
        1. Fetch the branch's products (timeout + retries)
        2. If the branch differs from the active one, clear the status cache so
           no product is compared against another branch's stock
        3. Ingest the products and collect the reported transitions
        4. Compute the current alert lists

        Args:
            branch_id: Branch to load

        Returns:
            BranchRefresh, or None if the product source could not be read
        """
        products = await self._load_branch_products(branch_id)
        if products is None:
            return None

        branch_changed = branch_id != self.active_branch_id
        if branch_changed:
            logger.info(f"Switching active branch {self.active_branch_id} -> {branch_id}")
            self.monitor.reset()
            self.active_branch_id = branch_id

        transitions = self.monitor.ingest_batch(products)
        alerts = self.monitor.compute_alerts(products)

        logger.info(
            f"Branch {branch_id} refreshed: {len(products)} products, {len(transitions)} transitions, "
            f"{len(alerts.low_stock)} low stock, {len(alerts.out_of_stock)} out of stock"
        )

        return BranchRefresh(
            branch_id=branch_id,
            branch_changed=branch_changed,
            products=len(products),
            transitions=transitions,
            alerts=alerts
        )

    def ingest_products(self, products: Iterable[Any]) -> List[StockLevelChanged]:
        return self.monitor.ingest_batch(products)

    def compute_alerts(self, products: Iterable[Any]) -> StockAlerts:
        return self.monitor.compute_alerts(products)

    def get_status(self, product_id: int) -> Optional[StockStatus]:
        return self.monitor.get_status(product_id)

    def forget(self, product_id: int) -> bool:
        return self.monitor.forget(product_id)

    def reset(self) -> int:
        """Clear the status cache; the next branch refresh reports every product again."""
        self.active_branch_id = None
        return self.monitor.reset()

    def recent_notifications(self, limit: Optional[int] = None) -> List[StockLevelChanged]:
        return self.notifications.recent(limit)
