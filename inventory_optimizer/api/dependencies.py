"""
Shared FastAPI dependencies

Author: TM3
Date: 2025-11-10
"""
from inventory_optimizer.services.analytics_service import AnalyticsService


def get_analytics_service() -> AnalyticsService:
    """One service (and one store/fetcher pair) per request; nothing is shared between requests"""
    return AnalyticsService()
