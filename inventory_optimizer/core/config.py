"""
Centralized application configuration

Author: TM3
Date: 2025-11-03
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application configuration"""

    # API Settings
    API_TITLE: str = "Inventory Optimizer API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Sales, demand and profitability analytics"
    LOG_LEVEL: str = "INFO"

    # Tabular store (Supabase / PostgREST)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Table names
    PRODUCTS_TABLE: str = "products"
    CUSTOMERS_TABLE: str = "customers"
    SALES_TABLE: str = "sales"
    PRICES_TABLE: str = "prices"
    INVENTORY_TABLE: str = "inventory_current"

    # Primary-key columns, used as the last sort key so range paging is stable
    SALES_KEY_COLUMN: str = "id"
    PRICES_KEY_COLUMN: str = "id"
    INVENTORY_KEY_COLUMN: str = "id"

    # Chunked retrieval
    FETCH_BATCH_SIZE: int = 500
    FETCH_PAGE_SIZE: int = 1000
    FETCH_MAX_RETRIES: int = 3
    FETCH_RETRY_DELAY_SECONDS: float = 0.5
    FETCH_INTER_BATCH_DELAY_SECONDS: float = 0.01
    FETCH_CONCURRENCY: int = 4
    FETCH_CALL_TIMEOUT_SECONDS: float = 30.0

    # Pagination
    MAX_PAGE_SIZE: int = 100

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://yourdomain.com" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://127.0.0.1:5173"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
