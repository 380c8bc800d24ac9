"""
Customer records, keyed by a unique mobile number.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging
from typing import Optional

from storeapp.crud.base import CRUDBase
from storeapp.exceptions import ConflictError, InvalidOperationError
from storeapp.models import Customer
from storeapp.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


class CRUDCustomer(CRUDBase[Customer]):
    entity_name = "Customer"

    def __init__(self):
        super().__init__(Customer)

    def get_by_mobile(self, db: Session, mobile: str) -> Optional[Customer]:
        stmt = select(Customer).where(Customer.mobile == mobile)
        return db.execute(stmt).scalar_one_or_none()

    def create_customer(self, db: Session, *, obj_in: CustomerCreate) -> Customer:
        # Either field carries the number
        phone_number = obj_in.mobile or obj_in.phone
        if not obj_in.name or not phone_number:
            raise InvalidOperationError("Customer name and phone number are required")

        if self.get_by_mobile(db, phone_number):
            raise ConflictError("Customer with this phone number already exists")

        customer = self.create(db, obj_in={
            "name": obj_in.name,
            "mobile": phone_number,
            "phone": obj_in.phone or phone_number,
            "address": obj_in.address or "",
        })
        logger.info(f"Customer created: {customer.name} (id={customer.id})")
        return customer

    def update_customer(self, db: Session, *, customer: Customer, obj_in: CustomerUpdate) -> Customer:
        changes = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        mobile = changes.get("mobile")
        if mobile and mobile != customer.mobile:
            existing = self.get_by_mobile(db, mobile)
            if existing and existing.id != customer.id:
                raise ConflictError("Customer with this phone number already exists")
        return self.update(db, db_obj=customer, obj_in=changes)


crud_customer = CRUDCustomer()
