"""
Analytics Domain Models

Derived, per-request entities produced by the analytics services. None of
them is persisted or mutated after construction.

Author: TM3
Date: 2025-11-04
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Generic, List, Optional, TypeVar
from datetime import date

T = TypeVar("T")


class MonthlyBucket(BaseModel):
    """Quantity sold for one product in one calendar month"""

    product_id: str
    month_key: date = Field(..., description="UTC month-start date")
    quantity: float = 0

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        return {"month": self.month_key.isoformat(), "qty": self.quantity}


class AtRiskEntry(BaseModel):
    """Product whose weighted MOQ exceeds what is on hand"""

    product_id: str
    product_name: str = ""
    on_hand: float
    weighted_moq: int
    gap: float
    last_sale_date: Optional[date] = None

    model_config = ConfigDict(frozen=True)


class TopProductEntry(BaseModel):
    """Window totals for one product, ranked by historical gross profit"""

    product_id: str
    product_name: str = ""
    qty: float
    revenue: float
    gross_profit: float

    model_config = ConfigDict(frozen=True)


class Page(BaseModel, Generic[T]):
    """One page of a fully sorted list"""

    page: int
    page_size: int
    total: int
    pages: int
    items: List[T]

    model_config = ConfigDict(frozen=True)
