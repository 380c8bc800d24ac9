from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeapp.database import get_db
from storeapp.crud.customer import crud_customer
from storeapp.schemas.common import envelope
from storeapp.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from storeapp.security import get_current_user

router = APIRouter(prefix="/customer", tags=["customer"], dependencies=[Depends(get_current_user)])


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    """Name plus either mobile or phone; the number must be unused."""
    customer = crud_customer.create_customer(db, obj_in=payload)
    return envelope("Customer added successfully", CustomerResponse.model_validate(customer))


@router.get("/all")
async def list_customers(db: Session = Depends(get_db)):
    customers = crud_customer.get_multi(db)
    return envelope(
        "Customers retrieved successfully",
        [CustomerResponse.model_validate(c) for c in customers],
        count=len(customers),
    )


@router.get("/{customer_id}")
async def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = crud_customer.get_or_404(db, customer_id)
    return envelope("Customer retrieved successfully", CustomerResponse.model_validate(customer))


@router.put("/update/{customer_id}")
async def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    customer = crud_customer.get_or_404(db, customer_id)
    customer = crud_customer.update_customer(db, customer=customer, obj_in=payload)
    return envelope("Customer updated successfully", CustomerResponse.model_validate(customer))
