"""
Stock View.
Responsible for formatting monitor results for the API response.
"""

from typing import List
from stockwatch.models import (
    AlertsResponse,
    BranchRefresh,
    BranchRefreshResponse,
    IngestResponse,
    NotificationsResponse,
    StockAlerts,
    StockLevelChanged
)


class StockView:
    """
    View layer for stock resources.
    Handles the transformation of domain models to API response models.
    """

    @staticmethod
    def render_alerts(alerts: StockAlerts) -> AlertsResponse:
        return AlertsResponse(
            low_stock=alerts.low_stock,
            out_of_stock=alerts.out_of_stock,
            total_alerts=alerts.total
        )

    @staticmethod
    def render_ingest(ingested: int, transitions: List[StockLevelChanged]) -> IngestResponse:
        return IngestResponse(ingested=ingested, transitions=transitions)

    @classmethod
    def render_refresh(cls, result: BranchRefresh) -> BranchRefreshResponse:
        """
        Render the branch refresh response.

        Args:
            result: Outcome of StockService.refresh_branch

        Returns:
            BranchRefreshResponse: The formatted API response
        """
        return BranchRefreshResponse(
            branch_id=result.branch_id,
            branch_changed=result.branch_changed,
            products=result.products,
            transitions=result.transitions,
            alerts=cls.render_alerts(result.alerts)
        )

    @staticmethod
    def render_notifications(events: List[StockLevelChanged]) -> NotificationsResponse:
        # Newest first, like a notification dropdown
        ordered = list(reversed(events))
        return NotificationsResponse(count=len(ordered), notifications=ordered)
