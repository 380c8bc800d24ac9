"""
Sales invoices.

Creating a sale runs in one transaction:
1. Resolve each line price (explicit, else the oldest batch's sale price)
2. Insert the sale and its items
3. Deduct every line FIFO, recording stock allocations
4. Record the initial payment when one was made
Any failure rolls the whole sale back.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
import logging
import uuid
from datetime import date
from typing import Dict, List, Optional, Any

from storeapp.crud.base import CRUDBase
from storeapp.crud.customer import crud_customer
from storeapp.crud.stock import crud_stock
from storeapp.exceptions import (
    StoreError, InsufficientStockError, InvalidOperationError, NotFoundError, OverpaymentError
)
from storeapp.models import Sale, SaleItem, StockAllocation, Payment, Product
from storeapp.schemas.common import PaymentStatus, SaleStatus
from storeapp.schemas.sale import SaleCreate
from storeapp.utils.dates import as_naive_utc, day_bounds, utc_today
from storeapp.utils.money import to_money, money_sum, line_total, ZERO

logger = logging.getLogger(__name__)

SALE_LOAD = (
    selectinload(Sale.customer),
    selectinload(Sale.items).selectinload(SaleItem.product),
    selectinload(Sale.payments),
)


class CRUDSale(CRUDBase[Sale]):
    entity_name = "Sale"

    def __init__(self):
        super().__init__(Sale)

    # ====================
    # QUERIES
    # ====================

    def get_full(self, db: Session, id: int) -> Sale:
        return self.get_or_404(db, id, options=SALE_LOAD)

    def get_all(self, db: Session) -> List[Sale]:
        return self.get_multi(db, options=SALE_LOAD)

    def get_between(self, db: Session, start: date, end: Optional[date] = None) -> List[Sale]:
        """Sales whose invoice date falls on start..end, both days inclusive."""
        lower, upper = day_bounds(start, end)
        stmt = (
            select(Sale)
            .where(Sale.invoice_date >= lower, Sale.invoice_date < upper)
            .options(*SALE_LOAD)
            .order_by(Sale.invoice_date.desc(), Sale.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def get_today(self, db: Session) -> List[Sale]:
        return self.get_between(db, utc_today())

    def get_by_customer(self, db: Session, customer_id: int) -> List[Sale]:
        crud_customer.get_or_404(db, customer_id)
        stmt = (
            select(Sale)
            .where(Sale.customer_id == customer_id)
            .options(*SALE_LOAD)
            .order_by(Sale.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def get_active(self, db: Session) -> List[Sale]:
        stmt = (
            select(Sale)
            .where(Sale.status == SaleStatus.ACTIVE.value)
            .options(*SALE_LOAD)
            .order_by(Sale.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    # ====================
    # WRITES
    # ====================

    def generate_invoice_number(self, db: Session) -> str:
        while True:
            number = f"INV-{uuid.uuid4().hex[:8].upper()}"
            taken = db.execute(select(Sale.id).where(Sale.invoice_number == number)).first()
            if not taken:
                return number

    def create_sale(self, db: Session, *, obj_in: SaleCreate) -> Sale:
        customer = crud_customer.get_or_404(db, obj_in.customer_id)

        lines = []
        for item in obj_in.items:
            product = db.get(Product, item.product_id)
            if product is None:
                raise NotFoundError("Product", item.product_id)
            price = item.selling_price
            if price is None:
                price = crud_stock.oldest_sale_price(db, product.id)
                if price is None:
                    raise InsufficientStockError(product.name, 0, item.quantity)
            lines.append((product, item.quantity, to_money(price)))

        total = money_sum(line_total(quantity, price) for _, quantity, price in lines)
        paid = to_money(obj_in.paid_amount)
        if paid > total:
            logger.warning(f"Rejected sale for customer {customer.id}: paid {paid} exceeds total {total}")
            raise OverpaymentError(f"Paid amount ({paid}) cannot exceed total amount ({total})")

        invoice_date = as_naive_utc(obj_in.invoice_date)
        try:
            sale = Sale(
                customer_id=customer.id,
                invoice_number=self.generate_invoice_number(db),
                total_amount=total,
                status=SaleStatus.ACTIVE.value,
                note=obj_in.note,
            )
            if invoice_date:
                sale.invoice_date = invoice_date
            db.add(sale)
            db.flush()

            for product, quantity, price in lines:
                sale_item = SaleItem(
                    sale=sale,
                    product_id=product.id,
                    quantity=quantity,
                    selling_price=price,
                    total_price=line_total(quantity, price),
                )
                db.add(sale_item)
                db.flush()
                crud_stock.deduct_fifo(db, product=product, quantity=quantity, sale_item=sale_item)

            if paid > ZERO:
                payment = Payment(
                    sale=sale,
                    customer_id=customer.id,
                    amount=paid,
                    payment_mode=obj_in.payment_mode.value,
                    remark="Paid at sale",
                )
                if invoice_date:
                    payment.payment_date = invoice_date
                db.add(payment)

            db.commit()
        except StoreError:
            db.rollback()
            raise
        except Exception:
            db.rollback()
            logger.exception(f"Sale for customer {customer.id} rolled back")
            raise

        logger.info(
            f"Sale {sale.invoice_number} created for {customer.name}: "
            f"{len(lines)} lines, total {total}, paid {paid}"
        )
        return self.get_full(db, sale.id)

    def cancel_sale(self, db: Session, *, sale_id: int, reason: str) -> Sale:
        sale = self.get_or_404(db, sale_id, options=[
            selectinload(Sale.items).selectinload(SaleItem.allocations).selectinload(StockAllocation.stock),
            selectinload(Sale.payments),
        ])
        if sale.status != SaleStatus.ACTIVE.value:
            raise InvalidOperationError("Only active sales can be cancelled")
        if sale.payments:
            logger.warning(f"Refused to cancel sale {sale.invoice_number}: payments recorded")
            raise InvalidOperationError("Cannot cancel a sale with recorded payments")

        try:
            crud_stock.restock(db, sale=sale)
            sale.status = SaleStatus.CANCELLED.value
            sale.cancel_reason = reason
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Cancelling sale {sale.invoice_number} rolled back")
            raise

        logger.info(f"Sale {sale.invoice_number} cancelled: {reason}")
        return self.get_full(db, sale.id)

    # ====================
    # REPORTS
    # ====================

    def summary(self, db: Session) -> Dict[str, Any]:
        sales = self.get_active(db)
        lower, upper = day_bounds(utc_today())
        today = [s for s in sales if s.invoice_date and lower <= as_naive_utc(s.invoice_date) < upper]

        statuses = [s.payment_status for s in sales]
        total_revenue = money_sum(s.total_amount for s in sales)
        total_paid = money_sum(s.total_paid for s in sales)
        total_cost = money_sum(s.total_cost for s in sales)
        return {
            "total_sales": len(sales),
            "total_revenue": total_revenue,
            "total_paid": total_paid,
            "total_due": to_money(total_revenue - total_paid),
            "total_cost": total_cost,
            "total_profit": to_money(total_revenue - total_cost),
            "total_quantity_sold": sum(s.total_quantity for s in sales),
            "today_sales": len(today),
            "today_revenue": money_sum(s.total_amount for s in today),
            "paid_count": statuses.count(PaymentStatus.PAID.value),
            "partial_count": statuses.count(PaymentStatus.PARTIAL.value),
            "unpaid_count": statuses.count(PaymentStatus.UNPAID.value),
        }

    def report(self, db: Session) -> Dict[str, Any]:
        sales = self.get_active(db)

        by_product: Dict[int, Dict[str, Any]] = {}
        by_customer: Dict[int, Dict[str, Any]] = {}
        lines = []
        for sale in sales:
            customer = by_customer.setdefault(sale.customer_id, {
                "customer_id": sale.customer_id,
                "customer_name": sale.customer.name,
                "customer_mobile": sale.customer.mobile,
                "total_sales": 0,
                "total_quantity": 0,
                "total_amount": ZERO,
                "total_paid": ZERO,
            })
            customer["total_sales"] += 1
            customer["total_quantity"] += sale.total_quantity
            customer["total_amount"] = to_money(customer["total_amount"] + sale.total_amount)
            customer["total_paid"] = to_money(customer["total_paid"] + sale.total_paid)

            for item in sale.items:
                product = by_product.setdefault(item.product_id, {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": 0,
                    "revenue": ZERO,
                    "cost": ZERO,
                    "profit": ZERO,
                })
                product["quantity"] += item.quantity
                product["revenue"] = to_money(product["revenue"] + item.total_price)
                product["cost"] = to_money(product["cost"] + item.cost_amount)
                product["profit"] = to_money(product["profit"] + item.profit)
                lines.append(self._line_row(sale, item))

        for customer in by_customer.values():
            customer["total_due"] = to_money(customer["total_amount"] - customer["total_paid"])

        total_revenue = money_sum(s.total_amount for s in sales)
        total_cost = money_sum(s.total_cost for s in sales)
        return {
            "total_sales": len(sales),
            "total_revenue": total_revenue,
            "total_cost": total_cost,
            "total_profit": to_money(total_revenue - total_cost),
            "total_quantity_sold": sum(s.total_quantity for s in sales),
            "sales_by_product": sorted(by_product.values(), key=lambda row: row["revenue"], reverse=True),
            "sales_by_customer": sorted(by_customer.values(), key=lambda row: row["total_amount"], reverse=True),
            "sales": lines,
        }

    def daywise(self, db: Session) -> Dict[str, Any]:
        days: Dict[date, Dict[str, Any]] = {}
        for sale in self.get_active(db):
            sale_day = as_naive_utc(sale.invoice_date).date()
            day = days.setdefault(sale_day, {
                "date": sale_day.isoformat(),
                "total_sales": 0,
                "total_quantity": 0,
                "total_revenue": ZERO,
                "total_cost": ZERO,
                "total_profit": ZERO,
                "total_loss": ZERO,
                "sales_data": [],
            })
            day["total_sales"] += 1
            for item in sale.items:
                profit = item.profit
                day["total_quantity"] += item.quantity
                day["total_revenue"] += item.total_price
                day["total_cost"] += item.cost_amount
                day["total_profit"] += profit
                if profit < 0:
                    day["total_loss"] += abs(profit)
                day["sales_data"].append(self._line_row(sale, item))

        report = [days[key] for key in sorted(days, reverse=True)]
        for day in report:
            for key in ("total_revenue", "total_cost", "total_profit", "total_loss"):
                day[key] = to_money(day[key])

        total_days = len(report)
        overall_revenue = money_sum(day["total_revenue"] for day in report)
        overall_profit = money_sum(day["total_profit"] for day in report)
        summary = {
            "total_days": total_days,
            "overall_revenue": overall_revenue,
            "overall_profit": overall_profit,
            "overall_loss": money_sum(day["total_loss"] for day in report),
            "total_quantity_sold": sum(day["total_quantity"] for day in report),
            "average_revenue_per_day": to_money(overall_revenue / total_days) if total_days else ZERO,
            "average_profit_per_day": to_money(overall_profit / total_days) if total_days else ZERO,
        }
        return {"summary": summary, "days": report}

    @staticmethod
    def _line_row(sale: Sale, item: SaleItem) -> Dict[str, Any]:
        return {
            "sale_id": sale.id,
            "invoice_number": sale.invoice_number,
            "invoice_date": sale.invoice_date,
            "customer_name": sale.customer.name,
            "customer_mobile": sale.customer.mobile,
            "product_name": item.product_name,
            "quantity": item.quantity,
            "selling_price": item.selling_price,
            "total_price": item.total_price,
            "cost": item.cost_amount,
            "profit": item.profit,
        }


crud_sale = CRUDSale()
