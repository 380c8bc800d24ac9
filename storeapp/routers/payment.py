"""
Customer payments, outstanding invoices, dues and ledgers.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from storeapp.database import get_db
from storeapp.crud.payment import crud_payment
from storeapp.schemas.common import envelope
from storeapp.schemas.customer import CustomerResponse
from storeapp.schemas.payment import PaymentCreate, PaymentResponse
from storeapp.schemas.sale import SaleResponse
from storeapp.security import get_current_user
from storeapp.utils.money import money_sum

router = APIRouter(prefix="/payment", tags=["payment"], dependencies=[Depends(get_current_user)])


def _payments(payments):
    return [PaymentResponse.model_validate(p) for p in payments]


@router.post("/record", status_code=status.HTTP_201_CREATED)
async def record_payment(payload: PaymentCreate, db: Session = Depends(get_db)):
    """Append a payment; rejected when it exceeds what is left on the sale."""
    payment, sale = crud_payment.record_payment(db, obj_in=payload)
    return envelope(
        "Payment recorded successfully",
        {
            "payment": PaymentResponse.model_validate(payment),
            "total_sale_amount": sale.total_amount,
            "total_paid_so_far": sale.total_paid,
            "remaining_due": sale.remaining_balance,
            "payment_status": sale.payment_status,
        },
    )


@router.get("/all")
async def list_payments(db: Session = Depends(get_db)):
    payments = crud_payment.get_all(db)
    return envelope(
        "All payments retrieved successfully",
        _payments(payments),
        total_payments=money_sum(p.amount for p in payments),
        payment_count=len(payments),
    )


@router.get("/range")
async def payments_in_range(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    if start_date is None or end_date is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Start date and end date are required")
    payments = crud_payment.get_between(db, start_date, end_date)
    return envelope(
        "Payments retrieved successfully",
        _payments(payments),
        total_payments=money_sum(p.amount for p in payments),
        payment_count=len(payments),
    )


@router.get("/outstanding")
async def outstanding_payments(db: Session = Depends(get_db)):
    sales = crud_payment.outstanding(db)
    rows = []
    for sale in sales:
        row = SaleResponse.model_validate(sale).model_dump(mode="json")
        row["last_payment_date"] = sale.last_payment_date
        rows.append(row)
    return envelope(
        "Pending payments retrieved successfully",
        rows,
        total_pending_amount=money_sum(s.remaining_balance for s in sales),
        pending_count=len(sales),
    )


@router.get("/sale/{sale_id}")
async def sale_payment_history(sale_id: int, db: Session = Depends(get_db)):
    history = crud_payment.sale_history(db, sale_id)
    return envelope(
        "Payment history retrieved successfully",
        {
            "sale": SaleResponse.model_validate(history["sale"]),
            "payments": _payments(history["payments"]),
            "summary": history["summary"],
        },
    )


@router.get("/ledger/{customer_id}")
async def customer_ledger(customer_id: int, db: Session = Depends(get_db)):
    """Sales as debits, payments as credits, running balance owed by the customer."""
    ledger = crud_payment.customer_ledger(db, customer_id)
    return envelope(
        "Customer ledger retrieved successfully",
        {
            "customer": CustomerResponse.model_validate(ledger["customer"]),
            "entries": ledger["entries"],
            "summary": ledger["summary"],
        },
    )


@router.get("/dues")
async def all_dues(db: Session = Depends(get_db)):
    dues = crud_payment.all_dues(db)
    return envelope(
        "All customers dues retrieved successfully",
        dues,
        total_customers_with_dues=len(dues),
    )


@router.get("/dues/{customer_id}")
async def customer_dues(customer_id: int, db: Session = Depends(get_db)):
    return envelope("Customer dues retrieved successfully", crud_payment.customer_dues(db, customer_id))
