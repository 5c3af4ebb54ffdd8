"""
Customers API Endpoints

Author: TM3
Date: 2025-11-10
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from inventory_optimizer.api.dependencies import get_analytics_service
from inventory_optimizer.services.analytics_service import AnalyticsService
from inventory_optimizer.services.time_window import parse_as_of, parse_mode

router = APIRouter()


@router.get("")
async def get_customers(
    page: int = Query(1, description="Page number (1-based)"),
    page_size: int = Query(15, description="Rows per page"),
    search: Optional[str] = Query(None, description="Search by name"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Customers ordered by name"""
    return await service.list_customers(page=page, page_size=page_size, search=search)


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Basic customer record"""
    return await service.get_customer(customer_id)


@router.get("/{customer_id}/overview")
async def get_customer_overview(
    customer_id: str,
    mode: Optional[str] = Query("trailing12", description="trailing12 (last12) or calendar_year (year)"),
    year: Optional[str] = Query(None, description="Calendar year, required when mode=calendar_year"),
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Lifetime summary, monthly totals and products bought by one customer"""
    reporting_mode, reporting_year = parse_mode(mode, year)
    return await service.compute_customer_overview(
        customer_id, mode=reporting_mode, year=reporting_year, as_of=parse_as_of(as_of)
    )
