"""
Export API Endpoints
Full, unpaginated lists for spreadsheet downloads

Author: TM3
Date: 2025-11-10
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from inventory_optimizer.api.dependencies import get_analytics_service
from inventory_optimizer.services.analytics_service import AnalyticsService
from inventory_optimizer.services.time_window import parse_as_of

router = APIRouter()


@router.get("/all-products")
async def export_all_products(
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Every product ordered by name"""
    return await service.export_products("all", as_of=parse_as_of(as_of))


@router.get("/best-products")
async def export_best_products(
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Every product, highest gross profit first"""
    return await service.export_products("best", as_of=parse_as_of(as_of))


@router.get("/worst-products")
async def export_worst_products(
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Every product, lowest gross profit first"""
    return await service.export_products("worst", as_of=parse_as_of(as_of))


@router.get("/products-at-risk")
async def export_products_at_risk(
    as_of: Optional[str] = Query(None, description="Anchor date YYYY-MM-DD"),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Every product at stockout risk, largest gap first"""
    return await service.export_at_risk(as_of=parse_as_of(as_of))
