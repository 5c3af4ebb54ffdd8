"""
Domain Layer - Business Entities

Pydantic models for the immutable inputs (catalog, sales, prices,
inventory) and the derived analytics entities.

Author: TM3
Date: 2025-11-04
"""
from inventory_optimizer.domain.product import Product, PriceRecord, InventorySnapshot
from inventory_optimizer.domain.sales import Customer, SaleRecord
from inventory_optimizer.domain.analytics import MonthlyBucket, AtRiskEntry, TopProductEntry, Page

__all__ = [
    'Product', 'PriceRecord', 'InventorySnapshot',
    'Customer', 'SaleRecord',
    'MonthlyBucket', 'AtRiskEntry', 'TopProductEntry', 'Page'
]
