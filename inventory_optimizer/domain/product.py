"""
Product Domain Models

Represents the product catalog, its price history and the current
inventory snapshot. All of them are immutable inputs to the analytics core.

Author: TM3
Date: 2025-11-03
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date


class Product(BaseModel):
    """
    Product domain model - an entry in the name catalog

    Fields:
        id: Product ID (primary key in the store)
        name: Display name (may be blank in the source data)
    """

    id: str = Field(..., description="Product ID")
    name: str = Field("", description="Product name")

    model_config = ConfigDict(frozen=True)

    @property
    def has_name(self) -> bool:
        """Check if product has a usable display name"""
        return bool(self.name and self.name.strip())


class PriceRecord(BaseModel):
    """
    A price point that became effective on a given date.

    unit_cost is Optional because the source table allows nulls; such a
    record still occupies its position in the cost timeline (cost 0).
    """

    product_id: str = Field(..., description="Product ID")
    effective_date: date = Field(..., description="Date the price point became effective")
    unit_cost: Optional[float] = Field(None, description="Unit cost (purchase price)")
    unit_price: Optional[float] = Field(None, description="Unit list price")

    model_config = ConfigDict(frozen=True)


class InventorySnapshot(BaseModel):
    """Current stock position for a product"""

    product_id: str = Field(..., description="Product ID")
    on_hand: float = Field(0, description="Units on hand (can be negative after corrections)")
    backorder: float = Field(0, description="Units on backorder")
    as_of: Optional[date] = Field(None, description="Snapshot date")

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        return {"on_hand": self.on_hand, "backorder": self.backorder}
