"""
Products API Endpoints
Product list ranked by gross profit and per-product analytics

Author: TM3
Date: 2025-10-03
Updated: 2025-11-10 (served by AnalyticsService)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from inventory_optimizer.api.dependencies import get_analytics_service
from inventory_optimizer.services.analytics_service import AnalyticsService
from inventory_optimizer.services.time_window import parse_as_of, parse_mode

router = APIRouter()


@router.get("")
async def get_products(
    page: int = Query(1, description="Page number (1-based)"),
    page_size: int = Query(20, description="Rows per page"),
    search: Optional[str] = Query(None, description="Search by name"),
    order: str = Query("gp_desc", description="gp_desc or gp_asc"),
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Products ranked by trailing-12 historical gross profit"""
    return await service.list_products(
        page=page, page_size=page_size, search=search, order=order, as_of=parse_as_of(as_of)
    )


@router.get("/{product_id}/overview")
async def get_product_overview(
    product_id: str,
    mode: Optional[str] = Query("trailing12", description="trailing12 (last12) or calendar_year (year)"),
    year: Optional[str] = Query(None, description="Calendar year, required when mode=calendar_year"),
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    top: int = Query(5, description="Number of top customers"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Product overview

    Returns monthly series, seasonality, 12-month demand stats, pricing,
    historical and display gross profit, inventory and top customers.
    """
    reporting_mode, reporting_year = parse_mode(mode, year)
    return await service.compute_product_overview(
        product_id,
        mode=reporting_mode,
        year=reporting_year,
        as_of=parse_as_of(as_of),
        top=top,
    )
