from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storeapp.schemas.common import Money
from storeapp.utils.money import positive_money


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class ProductCreate(ProductBase):
    cost_price: Decimal = Field(..., gt=0)
    margin_percent: Optional[Decimal] = Field(None, ge=0)

    @field_validator("cost_price")
    @classmethod
    def round_cost(cls, v: Decimal) -> Decimal:
        return positive_money(v)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    cost_price: Optional[Decimal] = Field(None, gt=0)
    margin_percent: Optional[Decimal] = Field(None, ge=0)

    @field_validator("cost_price")
    @classmethod
    def round_cost(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_money(v)


class ProductBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    cost_price: Money
    margin_percent: Money


class ProductResponse(ProductBrief):
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductStockRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    purchase_price: Money
    sale_price: Money
    original_quantity: int
    quantity: int


class ProductDetailResponse(ProductResponse):
    total_stock: int
    stocks: List[ProductStockRow] = []
