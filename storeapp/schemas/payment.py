from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from storeapp.schemas.common import Money, PaymentMode
from storeapp.schemas.customer import CustomerBrief
from storeapp.utils.money import positive_money


class PaymentCreate(BaseModel):
    sale_id: int = Field(..., gt=0)
    customer_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0)
    payment_mode: PaymentMode = PaymentMode.CASH
    remark: Optional[str] = Field(None, max_length=255)
    payment_date: Optional[datetime] = None

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        return positive_money(v)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sale_id: int
    customer_id: int
    customer: Optional[CustomerBrief] = None
    amount: Money
    payment_mode: PaymentMode
    payment_date: Optional[datetime] = None
    remark: Optional[str] = None
    created_at: Optional[datetime] = None
