"""
Sales Domain Models

Author: TM3
Date: 2025-11-03
"""
from pydantic import BaseModel, Field, ConfigDict
import datetime as dt


class Customer(BaseModel):
    """Customer domain model"""

    id: str = Field(..., description="Customer ID")
    name: str = Field("", description="Customer name")

    model_config = ConfigDict(frozen=True)


class SaleRecord(BaseModel):
    """
    A single sale line: quantity of one product sold to one customer on a date.

    unit_price is the actual selling price of this line, not the list price.
    """

    product_id: str = Field(..., description="Product ID")
    customer_id: str = Field("", description="Customer ID")
    date: dt.date = Field(..., description="Sale date (date only, UTC)")
    quantity: float = Field(0, description="Units sold")
    unit_price: float = Field(0, description="Selling price per unit")

    model_config = ConfigDict(frozen=True)

    @property
    def revenue(self) -> float:
        return self.quantity * self.unit_price
