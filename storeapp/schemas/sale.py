from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storeapp.schemas.common import Money, PaymentMode, PaymentStatus, SaleStatus
from storeapp.schemas.customer import CustomerBrief
from storeapp.utils.money import positive_money


class SaleItemCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    selling_price: Optional[Decimal] = Field(None, gt=0)

    @field_validator("selling_price")
    @classmethod
    def round_price(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_money(v)


class SaleCreate(BaseModel):
    customer_id: int = Field(..., gt=0)
    items: List[SaleItemCreate] = Field(..., min_length=1)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    payment_mode: PaymentMode = PaymentMode.CASH
    note: Optional[str] = Field(None, max_length=255)
    invoice_date: Optional[datetime] = None


class SaleCancel(BaseModel):
    reason: str = Field(..., min_length=3)


class SaleItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    selling_price: Money
    total_price: Money
    cost_amount: Money
    profit: Money


class SaleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    customer_id: int
    customer: Optional[CustomerBrief] = None
    total_amount: Money
    total_paid: Money
    remaining_balance: Money
    payment_status: PaymentStatus
    status: SaleStatus
    note: Optional[str] = None
    cancel_reason: Optional[str] = None
    invoice_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[SaleItemResponse] = []
