"""
Analysis API Endpoints
Sales summary across the whole catalog

Author: TM3
Date: 2025-11-14
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from inventory_optimizer.api.dependencies import get_analytics_service
from inventory_optimizer.services.analytics_service import AnalyticsService
from inventory_optimizer.services.time_window import parse_as_of, parse_mode

router = APIRouter()


@router.get("/sales-summary")
async def get_sales_summary(
    limit: int = Query(20, description="Number of top products (clamped to 1..200)"),
    mode: Optional[str] = Query("trailing12", description="trailing12 (last12) or calendar_year (year)"),
    year: Optional[str] = Query(None, description="Calendar year, required when mode=calendar_year"),
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Monthly quantity totals and best sellers by quantity

    Returns:
    - monthly_totals: [{month, total_quantity}]
    - top_products: [{product_id, product_name, total_quantity}]
    """
    reporting_mode, reporting_year = parse_mode(mode, year)
    return await service.sales_summary(
        limit=limit, mode=reporting_mode, year=reporting_year, as_of=parse_as_of(as_of)
    )
