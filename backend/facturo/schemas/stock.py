"""Stock item schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StockItemCreate(BaseModel):
    name: str = Field(min_length=1)
    my_product: bool = True
    quantity: int = Field(ge=0)
    min_stock: int = Field(default=0, ge=0)
    price: Decimal = Field(ge=0)
    currency: str = "EUR"
    supplier: Optional[str] = None
    description: str = ""


class StockItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    my_product: Optional[bool] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    min_stock: Optional[int] = Field(default=None, ge=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = None
    supplier: Optional[str] = None
    description: Optional[str] = None


class RestockRequest(BaseModel):
    quantity: int = Field(gt=0)


class StockItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    my_product: bool
    quantity: int
    min_stock: int
    price: Decimal
    currency: str
    supplier: Optional[str]
    description: str
    stock_status: str
    created_at: datetime
    updated_at: datetime


class StockSummary(BaseModel):
    total_items: int
    low_stock: int
    out_of_stock: int
    total_value: Decimal
