"""
Repository Layer - Data Access

This layer handles all reads from the tabular store and returns domain models.
Repositories abstract away query details from business logic.

Author: TM3
Date: 2025-11-05
"""
from inventory_optimizer.repositories.chunked_fetcher import ChunkedFetcher
from inventory_optimizer.repositories.store import TabularStore, Filter
from inventory_optimizer.repositories.product_repository import ProductRepository
from inventory_optimizer.repositories.customer_repository import CustomerRepository
from inventory_optimizer.repositories.sales_repository import SalesRepository
from inventory_optimizer.repositories.price_repository import PriceRepository
from inventory_optimizer.repositories.inventory_repository import InventoryRepository

__all__ = [
    'ChunkedFetcher',
    'TabularStore',
    'Filter',
    'ProductRepository',
    'CustomerRepository',
    'SalesRepository',
    'PriceRepository',
    'InventoryRepository'
]
