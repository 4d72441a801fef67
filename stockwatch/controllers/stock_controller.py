"""
Stock Controller.
Orchestrates the flow between the router, service, and view.
"""

from fastapi import HTTPException
import logging
from typing import Any, List, Optional
from stockwatch.core.service import StockService
from stockwatch.models import BranchRefresh, StockAlerts, StockLevelChanged, StockStatus

logger = logging.getLogger(__name__)


class StockController:
    """
    Controller for stock monitoring operations.
    """

    def __init__(self, service: Optional[StockService] = None):
        self.service = service if service is not None else StockService()

    @staticmethod
    def _validate_id(value: int, kind: str) -> None:
        """
        Reject non-positive identifiers.

        Raises:
            HTTPException: 400 if the identifier is not positive
        """
        if value <= 0:
            logger.warning(f"Invalid {kind} id: {value}")
            raise HTTPException(
                status_code=400,
                detail={
                    "error": f"Invalid {kind} id",
                    "detail": f"{kind.capitalize()} id must be a positive integer",
                    "received": value
                }
            )

    @staticmethod
    def _internal_error(action: str, e: Exception) -> HTTPException:
        logger.error(f"Error while {action}: {str(e)}", exc_info=True)
        return HTTPException(
            status_code=500,
            detail={
                "error": "Internal server error",
                "detail": str(e)
            }
        )

    def ingest(self, products: List[Any]) -> List[StockLevelChanged]:
        try:
            logger.info(f"Ingesting {len(products)} product snapshot(s)")
            return self.service.ingest_products(products)
        except Exception as e:
            raise self._internal_error("ingesting products", e)

    def compute_alerts(self, products: List[Any]) -> StockAlerts:
        try:
            return self.service.compute_alerts(products)
        except Exception as e:
            raise self._internal_error("computing alerts", e)

    def get_status(self, product_id: int) -> StockStatus:
        """
        Handle get status request.

        Raises:
            HTTPException: 404 if the product has not been seen since the last reset
        """
        self._validate_id(product_id, "product")

        status = self.service.get_status(product_id)
        if status is None:
            raise HTTPException(
                status_code=404,
                detail={
                    "error": "Unknown product",
                    "detail": f"No stock status recorded for product {product_id}"
                }
            )
        return status

    def forget(self, product_id: int) -> bool:
        self._validate_id(product_id, "product")
        return self.service.forget(product_id)

    def reset(self) -> int:
        return self.service.reset()

    async def refresh_branch(self, branch_id: int) -> BranchRefresh:
        """
        Handle branch refresh request.

        Args:
            branch_id: Branch to load

        Returns:
            BranchRefresh: Transitions and alerts for the branch

        Raises:
            HTTPException: If validation fails, the source is unavailable or an internal error occurs
        """
        self._validate_id(branch_id, "branch")

        try:
            logger.info(f"Processing refresh request for branch: {branch_id}")
            result = await self.service.refresh_branch(branch_id)
        except Exception as e:
            raise self._internal_error(f"refreshing branch {branch_id}", e)

        if result is None:
            raise HTTPException(
                status_code=503,
                detail={
                    "error": "Product source unavailable",
                    "detail": f"Could not load products for branch {branch_id}"
                }
            )
        return result

    def recent_notifications(self, limit: Optional[int] = None) -> List[StockLevelChanged]:
        return self.service.recent_notifications(limit)
