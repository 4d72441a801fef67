"""
Normalization of raw product payloads into ProductSnapshot models.
Handles missing fields, numeric strings and negative values so the monitor
always works on fully populated data.
"""

from collections.abc import Mapping
from typing import Any, Iterable, List, Optional
from stockwatch.models import (
    ProductSnapshot,
    VariantSpecification,
    VariantStockRecord
)
import logging

logger = logging.getLogger(__name__)


class SnapshotNormalizer:
    """
    Normalizes product payloads from the inventory API into a unified format.
    Never raises: anything missing or unreadable degrades to a zero value.
    """

    @staticmethod
    def _to_count(value: Any, field: str, product_ref: str) -> int:
        """
        Convert a quantity-like value to a non-negative integer.

        Business Rules:
        - None / missing → 0
        - Numeric strings are parsed ("12" → 12, "3.0" → 3)
        - Unparseable values → 0
        - Negative values are clamped to 0

        Args:
            value: Raw value from the payload
            field: Field name (for logging)
            product_ref: Product reference (for logging)

        Returns:
            Non-negative integer
        """
        if value is None or isinstance(value, bool):
            return 0

        try:
            if isinstance(value, int):
                count = value
            elif isinstance(value, str):
                count = SnapshotNormalizer._parse_count_string(value)
            else:
                count = int(value)
        except (ValueError, TypeError, OverflowError):
            logger.warning(f"{product_ref}: Invalid {field} value {value!r}, using 0")
            return 0

        if count < 0:
            logger.warning(f"{product_ref}: Negative {field} {count}, clamping to 0")
            return 0
        return count

    @staticmethod
    def _parse_count_string(value: str) -> int:
        # Integer strings stay exact; "3.0" style decimals go through float
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return int(float(text))

    @staticmethod
    def _to_price(value: Any) -> Optional[float]:
        """Parse a price, returning None when it is absent, negative or not numeric."""
        if value is None or isinstance(value, bool):
            return None
        try:
            price = float(value)
        except (ValueError, TypeError, OverflowError):
            logger.debug(f"Ignoring unparseable price {value!r}")
            return None
        if price < 0 or price != price:
            logger.debug(f"Ignoring invalid price {value!r}")
            return None
        return price

    @staticmethod
    def _to_specification(value: Any) -> Optional[VariantSpecification]:
        if value is None:
            return None
        if isinstance(value, Mapping):
            spec_id = value.get("id")
            return VariantSpecification(
                id=spec_id if isinstance(spec_id, int) and not isinstance(spec_id, bool) else None,
                name=str(value.get("name") or "")
            )
        if not value:
            return None
        # Some payloads send the specification name directly
        return VariantSpecification(name=str(value))

    @classmethod
    def normalize_stock(cls, raw: Any, product_ref: str = "product") -> Optional[VariantStockRecord]:
        """
        Normalize one per-variant stock record.

        Args:
            raw: Raw stock record (mapping) or an already built VariantStockRecord
            product_ref: Product reference (for logging)

        Returns:
            VariantStockRecord, or None if the entry is not a record at all
        """
        if isinstance(raw, VariantStockRecord):
            return raw
        if not isinstance(raw, Mapping):
            logger.warning(f"{product_ref}: Skipping stock entry of type {type(raw).__name__}")
            return None

        return VariantStockRecord(
            quantity=cls._to_count(raw.get("quantity"), "quantity", product_ref),
            low_stock_threshold=cls._to_count(
                raw.get("low_stock_threshold"), "low_stock_threshold", product_ref
            ),
            variant_specification=cls._to_specification(raw.get("variant_specification")),
            selling_price=cls._to_price(raw.get("selling_price"))
        )

    @classmethod
    def normalize_product(cls, raw: Any) -> ProductSnapshot:
        """
        Normalize a raw product payload.

        Business Rules:
        - Missing id → 0, missing name → ""
        - Missing or non-list "stocks" → no variant records
        - Quantities and thresholds default to 0 (see _to_count)
        - Prices that cannot be parsed, or are negative, are dropped

        Args:
            raw: Raw product payload (mapping) or an existing ProductSnapshot

        Returns:
            Fully populated ProductSnapshot
        """
        if isinstance(raw, ProductSnapshot):
            return raw
        if not isinstance(raw, Mapping):
            logger.warning(f"Received product payload of type {type(raw).__name__}, treating as empty")
            raw = {}

        product_id = cls._to_count(raw.get("id"), "id", "product")
        name = raw.get("name")
        name = "" if name is None else str(name)
        product_ref = f"Product {product_id}"

        raw_stocks = raw.get("stocks")
        if raw_stocks is None:
            raw_stocks = []
        elif isinstance(raw_stocks, (str, bytes, Mapping)) or not isinstance(raw_stocks, Iterable):
            logger.warning(f"{product_ref}: 'stocks' is not a list, ignoring it")
            raw_stocks = []

        stocks: List[VariantStockRecord] = []
        for raw_stock in raw_stocks:
            record = cls.normalize_stock(raw_stock, product_ref)
            if record is not None:
                stocks.append(record)

        return ProductSnapshot(
            id=product_id,
            name=name,
            price=cls._to_price(raw.get("price")),
            stocks=stocks
        )

    @classmethod
    def normalize_products(cls, raws: Optional[Iterable[Any]]) -> List[ProductSnapshot]:
        """Normalize a sequence of product payloads, preserving input order."""
        if raws is None:
            return []
        return [cls.normalize_product(raw) for raw in raws]
