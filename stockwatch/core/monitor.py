"""
Stock level monitor.

Remembers the last known stock status of every product it has seen and
publishes a notification whenever a product's out-of-stock or low-stock flag
changes. Also computes point-in-time alert lists that do not depend on
that memory.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from stockwatch.core.events import (
    STOCK_LEVEL_CHANGED,
    STOCK_UPDATED,
    EventBus,
    Handler,
    Subscription
)
from stockwatch.core.normalizer import SnapshotNormalizer
from stockwatch.models import (
    AlertItem,
    ProductSnapshot,
    StockAlerts,
    StockLevelChanged,
    StockStatus,
    StockUpdated,
    TransitionKind,
    VariantStockRecord
)

logger = logging.getLogger(__name__)


def is_out_of_stock(quantity: int) -> bool:
    return quantity == 0


def is_low_stock(quantity: int, threshold: int) -> bool:
    return 0 < quantity <= threshold


def calculate_stock_status(product: ProductSnapshot) -> StockStatus:
    """
    Aggregate a product's variant records into one status.

    Business Rules:
    - total_quantity = sum of variant quantities (0 without variants)
    - low_stock_threshold = max of variant thresholds (0 without variants)
    - out of stock when the total is 0, low stock when 0 < total <= threshold
    """
    total_quantity = sum(stock.quantity for stock in product.stocks)
    threshold = max((stock.low_stock_threshold for stock in product.stocks), default=0)

    return StockStatus(
        product_id=product.id,
        product_name=product.name,
        total_quantity=total_quantity,
        low_stock_threshold=threshold,
        is_out_of_stock=is_out_of_stock(total_quantity),
        is_low_stock=is_low_stock(total_quantity, threshold)
    )


def classify_transition(previous: Optional[StockStatus], current: StockStatus) -> Optional[TransitionKind]:
    """
    Decide whether moving from `previous` to `current` is worth reporting.

    Returns:
        The kind of transition, or None when neither flag changed
    """
    if previous is None:
        return TransitionKind.INITIAL
    if (previous.is_out_of_stock == current.is_out_of_stock
            and previous.is_low_stock == current.is_low_stock):
        return None
    if current.is_out_of_stock:
        return TransitionKind.BECAME_OUT_OF_STOCK
    if current.is_low_stock:
        return TransitionKind.BECAME_LOW_STOCK
    return TransitionKind.RETURNED_TO_NORMAL


def _selling_price(product: ProductSnapshot, stock: Optional[VariantStockRecord] = None) -> float:
    # A zero selling price falls back to the product price as well
    if stock is not None and stock.selling_price:
        return float(stock.selling_price)
    return float(product.price or 0)


def _variant_alert(product: ProductSnapshot, stock: VariantStockRecord) -> AlertItem:
    spec = stock.variant_specification
    return AlertItem(
        product_id=product.id,
        product_name=product.name,
        display_name=f"{product.name} ({spec.name})" if spec else product.name,
        variant_name=spec.name if spec and spec.name else "Default",
        quantity=stock.quantity,
        threshold=stock.low_stock_threshold,
        selling_price=_selling_price(product, stock),
        is_variant=spec is not None
    )


class StockMonitor:
    """
    Tracks per-product stock status and reports status transitions.

    Each instance owns its own status cache and event bus. The module level
    `stock_monitor` is the instance used by the service; tests and
    per-tenant contexts can build their own.
    """

    def __init__(self, bus: Optional[EventBus] = None):
        self._statuses: Dict[int, StockStatus] = {}
        self.bus = bus if bus is not None else EventBus()

    def subscribe(self, handler: Handler, channel: str = STOCK_LEVEL_CHANGED) -> Subscription:
        """
        Register a listener for stock notifications.

        Args:
            handler: Callable receiving StockLevelChanged (or StockUpdated on stock_updated)
            channel: stock_level_changed (default) or stock_updated

        Returns:
            Subscription token; call unsubscribe() on it to stop receiving events
        """
        return self.bus.subscribe(channel, handler)

    def get_status(self, product_id: int) -> Optional[StockStatus]:
        return self._statuses.get(product_id)

    def ingest(self, product: Any) -> Optional[StockLevelChanged]:
        """
        Record a product snapshot and notify listeners if its status changed.

        A change is a first sighting, or a flip of the out-of-stock or
        low-stock flag. Quantity changes inside the same band are not reported.

        Args:
            product: ProductSnapshot or raw product payload

        Returns:
            The published StockLevelChanged, or None when nothing changed
        """
        snapshot = SnapshotNormalizer.normalize_product(product)
        current = calculate_stock_status(snapshot)
        previous = self._statuses.get(snapshot.id)

        self._statuses[snapshot.id] = current

        action = classify_transition(previous, current)
        if action is None:
            return None

        logger.info(
            f"Stock alert triggered for {snapshot.name!r} (id={snapshot.id}): {action.value} - "
            f"quantity={current.total_quantity}, threshold={current.low_stock_threshold}"
        )

        event = StockLevelChanged(
            product_id=snapshot.id,
            product=snapshot,
            previous_status=previous.flags if previous is not None else None,
            current_status=current.to_current(),
            action=action
        )
        self.bus.publish(STOCK_LEVEL_CHANGED, event)
        self.bus.publish(STOCK_UPDATED, StockUpdated())
        return event

    def ingest_batch(self, products: Optional[Iterable[Any]]) -> List[StockLevelChanged]:
        """
        Ingest products one by one, in input order.
        Listeners may observe the batch half applied.

        Returns:
            Events published during the batch
        """
        events: List[StockLevelChanged] = []
        for product in products or []:
            event = self.ingest(product)
            if event is not None:
                events.append(event)

        logger.debug(f"Ingested batch: {len(events)} status change(s)")
        return events

    def forget(self, product_id: int) -> bool:
        """
        Drop the stored status of one product (e.g. after it was deleted).
        The next ingest for it counts as a first sighting.
        """
        removed = self._statuses.pop(product_id, None) is not None
        if removed:
            logger.info(f"Forgot stock status for product {product_id}")
        return removed

    def reset(self) -> int:
        """
        Clear every stored status, e.g. when switching branch or tenant.

        Returns:
            Number of entries cleared
        """
        cleared = len(self._statuses)
        self._statuses.clear()
        logger.info(f"Stock status cache cleared ({cleared} entries)")
        return cleared

    @staticmethod
    def compute_alerts(products: Optional[Iterable[Any]]) -> StockAlerts:
        """
        Build low-stock and out-of-stock alert lists for the given products.

        Business Rules:
        - Every variant record is evaluated on its own quantity and threshold,
          so one product may appear in both lists through different variants
        - A product without variant records yields at most one product level alert
        - The status cache is neither read nor written

        Args:
            products: ProductSnapshots or raw product payloads

        Returns:
            StockAlerts in input product order, then variant order
        """
        alerts = StockAlerts()

        for product in SnapshotNormalizer.normalize_products(products):
            if product.stocks:
                for stock in product.stocks:
                    if is_out_of_stock(stock.quantity):
                        alerts.out_of_stock.append(_variant_alert(product, stock))
                    elif is_low_stock(stock.quantity, stock.low_stock_threshold):
                        alerts.low_stock.append(_variant_alert(product, stock))
                continue

            status = calculate_stock_status(product)
            if not (status.is_out_of_stock or status.is_low_stock):
                continue
            item = AlertItem(
                product_id=product.id,
                product_name=product.name,
                display_name=product.name,
                quantity=status.total_quantity,
                threshold=status.low_stock_threshold,
                selling_price=_selling_price(product),
                is_variant=False
            )
            if status.is_out_of_stock:
                alerts.out_of_stock.append(item)
            else:
                alerts.low_stock.append(item)

        return alerts

    def __len__(self) -> int:
        return len(self._statuses)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._statuses


# Process-wide instance
stock_monitor = StockMonitor()
