"""
Shared schema pieces: status enums, the JSON money type and the
response envelope.
"""
from pydantic import BaseModel, PlainSerializer
from typing import Annotated, Any, Dict, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentMode(str, Enum):
    CASH = "CASH"
    UPI = "UPI"
    BANK = "BANK"
    CARD = "CARD"


class SaleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class LedgerEntryType(str, Enum):
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    PAYMENT = "PAYMENT"


# Decimal in Python, plain number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def envelope(message: str, data: Any = None, **extra: Any) -> Dict[str, Any]:
    """Success envelope shared by every endpoint."""
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def error_envelope(message: str, error: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body


class LedgerEntry(BaseModel):
    date: Optional[datetime] = None
    reference_id: str
    type: LedgerEntryType
    description: str
    debit: Money
    credit: Money
    balance: Money
    sale_id: Optional[int] = None
    purchase_id: Optional[int] = None
    payment_id: Optional[int] = None
