import pytest

from stockwatch.core.events import STOCK_UPDATED
from stockwatch.core.monitor import StockMonitor


def make_product(product_id=1, name="Widget", stocks=None, price=None):
    """Raw product payload shaped like the inventory API response."""
    product = {"id": product_id, "name": name, "stocks": stocks if stocks is not None else []}
    if price is not None:
        product["price"] = price
    return product


def stock(quantity=0, threshold=0, variant=None, selling_price=None):
    record = {"quantity": quantity, "low_stock_threshold": threshold}
    if variant is not None:
        record["variant_specification"] = {"name": variant}
    if selling_price is not None:
        record["selling_price"] = selling_price
    return record


class Recorder:
    """Collects notifications from both monitor channels."""

    def __init__(self, monitor):
        self.changes = []
        self.updates = []
        monitor.subscribe(self.changes.append)
        monitor.subscribe(self.updates.append, STOCK_UPDATED)


@pytest.fixture
def monitor():
    return StockMonitor()


@pytest.fixture
def recorder(monitor):
    return Recorder(monitor)
