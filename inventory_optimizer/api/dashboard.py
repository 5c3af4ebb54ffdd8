"""
Dashboard API Endpoints

Author: TM3
Date: 2025-11-10
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from inventory_optimizer.api.dependencies import get_analytics_service
from inventory_optimizer.services.analytics_service import AnalyticsService
from inventory_optimizer.services.time_window import parse_as_of

router = APIRouter()


@router.get("/overview")
async def get_dashboard_overview(
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD (default: today UTC)"),
    page: int = Query(1, description="At-risk page number (1-based)"),
    page_size: int = Query(20, description="At-risk rows per page"),
    top: int = Query(20, description="Number of top products by gross profit"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Dashboard overview for the trailing twelve months

    Returns:
    - Catalog and sales totals
    - Paginated products at stockout risk
    - Top products by historical gross profit
    """
    return await service.compute_dashboard_overview(
        as_of=parse_as_of(as_of), page=page, page_size=page_size, top=top
    )
