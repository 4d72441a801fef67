"""
Data models for the stock monitoring service.
All models use Pydantic for validation and static typing.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VariantSpecification(BaseModel):
    """
    Variant specification attached to a stock record (e.g. "Large", "Red").
    A stock record without one is the product's default variant.
    """
    id: Optional[int] = None
    name: str = ""


class VariantStockRecord(BaseModel):
    """
    Stock held for one variant of a product.
    Field names follow the inventory API payload (snake_case).
    """
    quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=0, ge=0)
    variant_specification: Optional[VariantSpecification] = None
    selling_price: Optional[float] = None

    @field_validator('selling_price')
    @classmethod
    def validate_selling_price(cls, v: Optional[float]) -> Optional[float]:
        """
        Selling price validation: Must be >= 0 when present.
        The normalizer drops negative prices before building the record.
        """
        if v is not None and v < 0:
            raise ValueError('Selling price must not be negative')
        return v


class ProductSnapshot(BaseModel):
    """
    Point-in-time read of a product and its per-variant stock records.
    Built by SnapshotNormalizer from raw payloads, so all numeric fields are populated.
    """
    id: int
    name: str = ""
    price: Optional[float] = None
    stocks: List[VariantStockRecord] = Field(default_factory=list)

    @field_validator('price')
    @classmethod
    def validate_price(cls, v: Optional[float]) -> Optional[float]:
        """Product price validation: Must be >= 0 when present."""
        if v is not None and v < 0:
            raise ValueError('Price must not be negative')
        return v


class StatusFlags(BaseModel):
    """Out-of-stock / low-stock flags compared between snapshots."""
    is_out_of_stock: bool
    is_low_stock: bool


class CurrentStatus(StatusFlags):
    """Flags plus the aggregate figures they were derived from."""
    total_quantity: int
    low_stock_threshold: int


class StockStatus(BaseModel):
    """
    Aggregate stock status of one product.

    total_quantity is the sum of all variant quantities and low_stock_threshold
    the maximum of all variant thresholds (both 0 without variants).
    """
    product_id: int
    product_name: str
    total_quantity: int
    low_stock_threshold: int
    is_out_of_stock: bool
    is_low_stock: bool

    @property
    def flags(self) -> StatusFlags:
        return StatusFlags(
            is_out_of_stock=self.is_out_of_stock,
            is_low_stock=self.is_low_stock
        )

    def to_current(self) -> CurrentStatus:
        return CurrentStatus(
            is_out_of_stock=self.is_out_of_stock,
            is_low_stock=self.is_low_stock,
            total_quantity=self.total_quantity,
            low_stock_threshold=self.low_stock_threshold
        )


class TransitionKind(str, Enum):
    """What a reported status change means for the product."""
    INITIAL = "initial"
    BECAME_OUT_OF_STOCK = "became_out_of_stock"
    BECAME_LOW_STOCK = "became_low_stock"
    RETURNED_TO_NORMAL = "returned_to_normal"


class StockLevelChanged(BaseModel):
    """
    Notification published on the stock_level_changed channel.
    previous_status is None the first time a product is seen.
    """
    product_id: int
    product: ProductSnapshot
    previous_status: Optional[StatusFlags] = None
    current_status: CurrentStatus
    action: TransitionKind
    occurred_at: datetime = Field(default_factory=_utcnow)


class StockUpdated(BaseModel):
    """Payload-less notification published on the stock_updated channel."""


class AlertItem(BaseModel):
    """
    Out-of-stock or low-stock alert for one variant, or for a product without variants.
    """
    product_id: int
    product_name: str
    display_name: str
    variant_name: str = "Default"
    quantity: int
    threshold: int
    selling_price: float = 0.0
    is_variant: bool = False


class StockAlerts(BaseModel):
    """Point-in-time alert lists, in input product order."""
    low_stock: List[AlertItem] = Field(default_factory=list)
    out_of_stock: List[AlertItem] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.low_stock) + len(self.out_of_stock)


class BranchRefresh(BaseModel):
    """Outcome of reloading one branch's products into the monitor."""
    branch_id: int
    branch_changed: bool
    products: int
    transitions: List[StockLevelChanged] = Field(default_factory=list)
    alerts: StockAlerts = Field(default_factory=StockAlerts)


class ProductBatchRequest(BaseModel):
    """
    Request body carrying raw product payloads.
    Items are left untyped so incomplete records are normalized instead of rejected.
    """
    products: List[Any] = Field(default_factory=list)


class IngestResponse(BaseModel):
    """API response model for POST /stock/ingest."""
    ingested: int
    transitions: List[StockLevelChanged]
    timestamp: datetime = Field(default_factory=_utcnow)


class AlertsResponse(BaseModel):
    """API response model for alert queries."""
    low_stock: List[AlertItem]
    out_of_stock: List[AlertItem]
    total_alerts: int
    timestamp: datetime = Field(default_factory=_utcnow)


class BranchRefreshResponse(BaseModel):
    """API response model for POST /stock/branches/{branch_id}/refresh."""
    branch_id: int
    branch_changed: bool
    products: int
    transitions: List[StockLevelChanged]
    alerts: AlertsResponse


class ForgetResponse(BaseModel):
    product_id: int
    forgotten: bool


class ResetResponse(BaseModel):
    cleared: int


class NotificationsResponse(BaseModel):
    count: int
    notifications: List[StockLevelChanged]


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """
    error: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
