"""
Stock routes.
Handles stock monitoring endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Path, Query
from stockwatch.models import (
    AlertsResponse,
    BranchRefreshResponse,
    ErrorResponse,
    ForgetResponse,
    IngestResponse,
    NotificationsResponse,
    ProductBatchRequest,
    ResetResponse,
    StockStatus
)
from stockwatch.controllers.stock_controller import StockController
from stockwatch.views.stock_view import StockView

router = APIRouter(
    prefix="/stock",
    tags=["stock"]
)

# Initialize controller
controller = StockController()


async def ingest_products(request: ProductBatchRequest) -> IngestResponse:
    """
    Feed product snapshots to the monitor.

    Returns:
        IngestResponse with the status transitions that were reported
    """
    transitions = controller.ingest(request.products)
    return StockView.render_ingest(len(request.products), transitions)


async def compute_alerts(request: ProductBatchRequest) -> AlertsResponse:
    """
    Compute low-stock and out-of-stock alerts for the given products.
    Does not touch the stored statuses.
    """
    alerts = controller.compute_alerts(request.products)
    return StockView.render_alerts(alerts)


async def get_status(
    product_id: int = Path(..., description="Product identifier", examples=[101])
) -> StockStatus:
    """
    Get the last recorded stock status of a product.
    """
    return controller.get_status(product_id)


async def forget_status(
    product_id: int = Path(..., description="Product identifier", examples=[101])
) -> ForgetResponse:
    """
    Drop the recorded status of a product, e.g. after deleting it.
    """
    return ForgetResponse(product_id=product_id, forgotten=controller.forget(product_id))


async def reset_statuses() -> ResetResponse:
    """
    Clear every recorded status.
    """
    return ResetResponse(cleared=controller.reset())


async def refresh_branch(
    branch_id: int = Path(..., description="Branch identifier", examples=[1])
) -> BranchRefreshResponse:
    """
    Load a branch's products, report transitions and return its current alerts.
    Switching to another branch clears the recorded statuses first.
    """
    result = await controller.refresh_branch(branch_id)
    return StockView.render_refresh(result)


async def list_notifications(
    limit: Optional[int] = Query(None, ge=1, le=500, description="Only return the newest N notifications")
) -> NotificationsResponse:
    """
    List recent stock level notifications, newest first.
    """
    return StockView.render_notifications(controller.recent_notifications(limit))


router.add_api_route(
    "/ingest",
    ingest_products,
    methods=["POST"],
    response_model=IngestResponse,
    responses={500: {"description": "Internal server error", "model": ErrorResponse}},
    summary="Ingest product snapshots"
)

router.add_api_route(
    "/alerts",
    compute_alerts,
    methods=["POST"],
    response_model=AlertsResponse,
    responses={500: {"description": "Internal server error", "model": ErrorResponse}},
    summary="Compute stock alerts"
)

router.add_api_route(
    "/status/{product_id}",
    get_status,
    methods=["GET"],
    response_model=StockStatus,
    responses={
        200: {
            "description": "Last recorded status",
            "model": StockStatus
        },
        400: {
            "description": "Invalid product id",
            "model": ErrorResponse
        },
        404: {
            "description": "Product not seen since the last reset",
            "model": ErrorResponse
        }
    },
    summary="Get stock status by product id"
)

router.add_api_route(
    "/status/{product_id}",
    forget_status,
    methods=["DELETE"],
    response_model=ForgetResponse,
    responses={400: {"description": "Invalid product id", "model": ErrorResponse}},
    summary="Forget a product's stock status"
)

router.add_api_route(
    "/reset",
    reset_statuses,
    methods=["POST"],
    response_model=ResetResponse,
    summary="Clear all stock statuses"
)

router.add_api_route(
    "/branches/{branch_id}/refresh",
    refresh_branch,
    methods=["POST"],
    response_model=BranchRefreshResponse,
    responses={
        400: {
            "description": "Invalid branch id",
            "model": ErrorResponse
        },
        503: {
            "description": "Product source unavailable",
            "model": ErrorResponse
        },
        500: {
            "description": "Internal server error",
            "model": ErrorResponse
        }
    },
    summary="Refresh a branch's stock"
)

router.add_api_route(
    "/notifications",
    list_notifications,
    methods=["GET"],
    response_model=NotificationsResponse,
    summary="List recent stock notifications"
)
