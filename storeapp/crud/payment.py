"""
Customer payments, dues and ledgers.
Payment rows are append-only; every balance here is derived from them.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
import logging
from datetime import date
from typing import Dict, List, Tuple, Any

from storeapp.crud.base import CRUDBase
from storeapp.crud.customer import crud_customer
from storeapp.crud.sale import crud_sale, SALE_LOAD
from storeapp.exceptions import InvalidOperationError, NotFoundError, OverpaymentError
from storeapp.models import Customer, Payment, Sale
from storeapp.schemas.common import LedgerEntryType, SaleStatus
from storeapp.schemas.payment import PaymentCreate
from storeapp.utils.dates import as_naive_utc, day_bounds
from storeapp.utils.ledger import LedgerRow, build_ledger
from storeapp.utils.money import to_money, money_sum, percent, ZERO

logger = logging.getLogger(__name__)

PAYMENT_LOAD = (
    selectinload(Payment.customer),
    selectinload(Payment.sale),
)


class CRUDPayment(CRUDBase[Payment]):
    entity_name = "Payment"

    def __init__(self):
        super().__init__(Payment)

    def record_payment(self, db: Session, *, obj_in: PaymentCreate) -> Tuple[Payment, Sale]:
        """Append a payment to a sale; the sale row stays locked until commit."""
        stmt = (
            select(Sale)
            .where(Sale.id == obj_in.sale_id)
            .options(selectinload(Sale.payments))
            .with_for_update()
        )
        sale = db.execute(stmt).scalar_one_or_none()
        if sale is None:
            raise NotFoundError("Sale", obj_in.sale_id)
        customer = crud_customer.get_or_404(db, obj_in.customer_id)

        if sale.customer_id != customer.id:
            raise InvalidOperationError("Sale does not belong to this customer")
        if sale.status != SaleStatus.ACTIVE.value:
            raise InvalidOperationError("Cannot record payment on a cancelled sale")

        amount = to_money(obj_in.amount)
        remaining = sale.remaining_balance
        if amount > remaining:
            logger.warning(f"Rejected payment of {amount} on sale {sale.invoice_number}: remaining {remaining}")
            raise OverpaymentError(
                f"Payment amount exceeds remaining due. Total sale: {sale.total_amount}, "
                f"Already paid: {sale.total_paid}, Remaining: {remaining}"
            )

        payment = Payment(
            customer_id=customer.id,
            amount=amount,
            payment_mode=obj_in.payment_mode.value,
            remark=obj_in.remark,
        )
        if obj_in.payment_date:
            payment.payment_date = as_naive_utc(obj_in.payment_date)
        sale.payments.append(payment)
        self._commit(db, f"recording payment on sale {sale.id}")
        db.refresh(payment)

        logger.info(
            f"Payment {payment.id} of {amount} recorded on sale {sale.invoice_number} "
            f"({sale.payment_status})"
        )
        return payment, sale

    def get_all(self, db: Session) -> List[Payment]:
        stmt = (
            select(Payment)
            .options(*PAYMENT_LOAD)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def get_between(self, db: Session, start: date, end: date) -> List[Payment]:
        lower, upper = day_bounds(start, end)
        stmt = (
            select(Payment)
            .where(Payment.payment_date >= lower, Payment.payment_date < upper)
            .options(*PAYMENT_LOAD)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def outstanding(self, db: Session) -> List[Sale]:
        """Active sales with something left to pay, newest first."""
        sales = [sale for sale in crud_sale.get_active(db) if sale.remaining_balance > ZERO]
        sales.sort(key=lambda sale: (as_naive_utc(sale.invoice_date), sale.id), reverse=True)
        return sales

    def sale_history(self, db: Session, sale_id: int) -> Dict[str, Any]:
        sale = crud_sale.get_full(db, sale_id)
        return {
            "sale": sale,
            "payments": list(sale.payments),
            "summary": {
                "total_amount": sale.total_amount,
                "total_paid": sale.total_paid,
                "remaining_due": sale.remaining_balance,
                "payment_status": sale.payment_status,
                "total_payments": len(sale.payments),
            },
        }

    def _active_sales_for(self, db: Session, customer_id: int) -> List[Sale]:
        stmt = (
            select(Sale)
            .where(Sale.customer_id == customer_id, Sale.status == SaleStatus.ACTIVE.value)
            .options(*SALE_LOAD)
            .order_by(Sale.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def customer_ledger(self, db: Session, customer_id: int) -> Dict[str, Any]:
        """Sales debit the customer, payments credit; balance is what the customer owes."""
        customer = crud_customer.get_or_404(db, customer_id)
        sales = self._active_sales_for(db, customer_id)

        rows = []
        for sale in sales:
            rows.append(LedgerRow(
                date=sale.invoice_date,
                reference_id=sale.invoice_number,
                type=LedgerEntryType.SALE,
                description=f"Sale {sale.invoice_number} ({sale.total_quantity} units)",
                debit=sale.total_amount,
                sale_id=sale.id,
            ))
            for payment in sale.payments:
                rows.append(LedgerRow(
                    date=payment.payment_date,
                    reference_id=f"PAY-{payment.id}",
                    type=LedgerEntryType.PAYMENT,
                    description=f"Payment ({payment.payment_mode}) against {sale.invoice_number}",
                    credit=payment.amount,
                    sale_id=sale.id,
                    payment_id=payment.id,
                ))

        entries = build_ledger(rows, balance_side="debit")
        total_amount = money_sum(row.debit for row in rows)
        total_paid = money_sum(row.credit for row in rows)
        return {
            "customer": customer,
            "entries": entries,
            "summary": {
                "total_amount": total_amount,
                "total_paid": total_paid,
                "total_due": to_money(total_amount - total_paid),
                "total_payments": sum(len(sale.payments) for sale in sales),
                "invoice_count": len(sales),
            },
        }

    def all_dues(self, db: Session) -> List[Dict[str, Any]]:
        """One row per customer with active sales, highest outstanding first."""
        stmt = (
            select(Customer)
            .options(selectinload(Customer.sales).selectinload(Sale.payments))
            .order_by(Customer.id)
        )
        dues = []
        for customer in db.execute(stmt).scalars().all():
            sales = [sale for sale in customer.sales if sale.status == SaleStatus.ACTIVE.value]
            if not sales:
                continue
            total_amount = money_sum(sale.total_amount for sale in sales)
            total_paid = money_sum(sale.total_paid for sale in sales)
            dues.append({
                "customer_id": customer.id,
                "customer_name": customer.name,
                "customer_phone": customer.phone or customer.mobile,
                "total_amount": total_amount,
                "total_paid": total_paid,
                "outstanding_balance": to_money(total_amount - total_paid),
                "total_sales": len(sales),
                "payment_percentage": percent(total_paid, total_amount),
            })
        dues.sort(key=lambda row: row["outstanding_balance"], reverse=True)
        return dues

    def customer_dues(self, db: Session, customer_id: int) -> Dict[str, Any]:
        customer = crud_customer.get_or_404(db, customer_id)
        sales = self._active_sales_for(db, customer_id)

        invoices = [
            {
                "sale_id": sale.id,
                "invoice_number": sale.invoice_number,
                "invoice_date": sale.invoice_date,
                "products": [item.product_name for item in sale.items],
                "total_quantity": sale.total_quantity,
                "total_amount": sale.total_amount,
                "paid_amount": sale.total_paid,
                "due_amount": sale.remaining_balance,
                "payment_status": sale.payment_status,
            }
            for sale in sales
        ]
        total_amount = money_sum(sale.total_amount for sale in sales)
        total_paid = money_sum(sale.total_paid for sale in sales)
        return {
            "customer_id": customer.id,
            "customer_name": customer.name,
            "customer_phone": customer.phone or customer.mobile,
            "total_amount": total_amount,
            "total_paid": total_paid,
            "outstanding_balance": to_money(total_amount - total_paid),
            "invoices": invoices,
        }


crud_payment = CRUDPayment()
