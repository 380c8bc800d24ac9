from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from storeapp.schemas.common import Money
from storeapp.schemas.product import ProductBrief
from storeapp.utils.money import positive_money


class StockCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    purchase_price: Decimal = Field(..., gt=0)
    sale_price: Optional[Decimal] = Field(None, gt=0)
    quantity: int = Field(..., gt=0)

    @field_validator("purchase_price", "sale_price")
    @classmethod
    def round_prices(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_money(v)


class StockUpdate(BaseModel):
    purchase_price: Optional[Decimal] = Field(None, gt=0)
    sale_price: Optional[Decimal] = Field(None, gt=0)
    quantity: Optional[int] = Field(None, gt=0)

    @field_validator("purchase_price", "sale_price")
    @classmethod
    def round_prices(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_money(v)


class StockDecrease(BaseModel):
    quantity_sold: int = Field(..., gt=0)


class StockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    purchase_item_id: Optional[int] = None
    purchase_price: Money
    sale_price: Money
    original_quantity: int
    quantity: int
    sold_quantity: int
    cost_value: Money
    sale_value: Money
    profit: Money
    profit_margin: Money
    created_at: Optional[datetime] = None
    product: Optional[ProductBrief] = None
