"""
Sales router.
Fixed paths (all, today, range, summary, report, daywise) are declared
before /{sale_id} so they are not captured by it.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from storeapp.database import get_db
from storeapp.crud.customer import crud_customer
from storeapp.crud.sale import crud_sale
from storeapp.schemas.common import envelope
from storeapp.schemas.sale import SaleCreate, SaleCancel, SaleResponse
from storeapp.security import get_current_user

router = APIRouter(prefix="/sale", tags=["sale"], dependencies=[Depends(get_current_user)])


def _sales(sales):
    return [SaleResponse.model_validate(s) for s in sales]


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_sale(payload: SaleCreate, db: Session = Depends(get_db)):
    """
    Create an invoice, deducting every line FIFO from stock.
    Nothing is written when any line cannot be covered.
    """
    sale = crud_sale.create_sale(db, obj_in=payload)
    return envelope("Sale created successfully", SaleResponse.model_validate(sale))


@router.get("/all")
async def list_sales(db: Session = Depends(get_db)):
    sales = crud_sale.get_all(db)
    return envelope("Sales retrieved successfully", _sales(sales), count=len(sales))


@router.get("/today")
async def todays_sales(db: Session = Depends(get_db)):
    sales = crud_sale.get_today(db)
    return envelope("Today's sales retrieved successfully", _sales(sales), count=len(sales))


@router.get("/range")
async def sales_in_range(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    if start_date is None or end_date is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Start date and end date are required")
    sales = crud_sale.get_between(db, start_date, end_date)
    return envelope("Sales retrieved successfully", _sales(sales), count=len(sales))


@router.get("/customer/{customer_id}")
async def sales_for_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = crud_customer.get_or_404(db, customer_id)
    sales = crud_sale.get_by_customer(db, customer_id)
    return envelope(
        "Customer sales retrieved successfully",
        _sales(sales),
        count=len(sales),
        customer_name=customer.name,
    )


@router.get("/summary")
async def sales_summary(db: Session = Depends(get_db)):
    return envelope("Sales summary retrieved successfully", crud_sale.summary(db))


@router.get("/report")
async def sales_report(db: Session = Depends(get_db)):
    return envelope("Sales report retrieved successfully", crud_sale.report(db))


@router.get("/daywise")
async def daywise_sales(db: Session = Depends(get_db)):
    report = crud_sale.daywise(db)
    return envelope(
        "Day-wise sales analytics retrieved successfully",
        report["days"],
        summary=report["summary"],
    )


@router.get("/{sale_id}")
async def get_sale(sale_id: int, db: Session = Depends(get_db)):
    sale = crud_sale.get_full(db, sale_id)
    return envelope("Sale retrieved successfully", SaleResponse.model_validate(sale))


@router.post("/{sale_id}/cancel")
async def cancel_sale(sale_id: int, payload: SaleCancel, db: Session = Depends(get_db)):
    sale = crud_sale.cancel_sale(db, sale_id=sale_id, reason=payload.reason)
    return envelope("Sale cancelled successfully", SaleResponse.model_validate(sale))
