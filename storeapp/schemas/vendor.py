from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storeapp.schemas.common import Money, PaymentMode, PaymentStatus
from storeapp.utils.money import positive_money


# ------------------------------
# Vendors
# ------------------------------
class VendorCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    mobile: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    gst_number: Optional[str] = Field(None, max_length=20)
    company_name: Optional[str] = Field(None, max_length=150)


class VendorUpdate(VendorCreate):
    pass


class VendorBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    company_name: Optional[str] = None
    mobile: Optional[str] = None


class VendorResponse(VendorBrief):
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ------------------------------
# Purchases
# ------------------------------
class PurchaseItemCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., gt=0)
    sale_price: Optional[Decimal] = Field(None, gt=0)

    @field_validator("unit_price", "sale_price")
    @classmethod
    def round_prices(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return positive_money(v)


class PurchaseCreate(BaseModel):
    vendor_id: int = Field(..., gt=0)
    invoice_number: Optional[str] = Field(None, max_length=50)
    purchase_date: Optional[datetime] = None
    items: List[PurchaseItemCreate] = Field(..., min_length=1)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    payment_mode: PaymentMode = PaymentMode.CASH
    notes: Optional[str] = None


class PurchasePaymentCreate(BaseModel):
    paid_amount: Decimal = Field(..., gt=0)
    payment_mode: Optional[PaymentMode] = None
    remark: Optional[str] = Field(None, max_length=255)

    @field_validator("paid_amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        """Rounded to two places; 0.001 is not a payment."""
        return positive_money(v)


class PurchaseItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: Money
    total_price: Money


class VendorPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    purchase_id: int
    vendor_id: int
    amount: Money
    payment_mode: PaymentMode
    payment_date: Optional[datetime] = None
    remark: Optional[str] = None


class PurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: int
    vendor: Optional[VendorBrief] = None
    invoice_number: Optional[str] = None
    purchase_date: Optional[datetime] = None
    total_amount: Money
    paid_amount: Money
    due_amount: Money
    payment_status: PaymentStatus
    payment_mode: Optional[str] = None
    notes: Optional[str] = None
    items: List[PurchaseItemResponse] = []
    payments: List[VendorPaymentResponse] = []
    created_at: Optional[datetime] = None


class VendorDetailResponse(VendorResponse):
    purchases: List[PurchaseResponse] = []
