"""
Vendors, purchases and vendor payments.

A purchase is written in one transaction: the purchase row, its items,
one new stock batch per item and the initial vendor payment.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload
import logging
from typing import Dict, List, Optional, Any

from storeapp.crud.base import CRUDBase
from storeapp.crud.stock import crud_stock
from storeapp.exceptions import ConflictError, InvalidOperationError, NotFoundError, OverpaymentError
from storeapp.models import Vendor, Purchase, PurchaseItem, VendorPayment, Product, Stock
from storeapp.schemas.common import LedgerEntryType, PaymentMode
from storeapp.schemas.vendor import VendorCreate, VendorUpdate, PurchaseCreate, PurchasePaymentCreate
from storeapp.utils.dates import as_naive_utc
from storeapp.utils.ledger import LedgerRow, build_ledger
from storeapp.utils.money import to_money, money_sum, line_total, ZERO

logger = logging.getLogger(__name__)

PURCHASE_LOAD = (
    selectinload(Purchase.vendor),
    selectinload(Purchase.items).selectinload(PurchaseItem.product),
    selectinload(Purchase.payments),
)


class CRUDVendor(CRUDBase[Vendor]):
    entity_name = "Vendor"

    def __init__(self):
        super().__init__(Vendor)

    def get_by_mobile(self, db: Session, mobile: str) -> Optional[Vendor]:
        stmt = select(Vendor).where(Vendor.mobile == mobile)
        return db.execute(stmt).scalar_one_or_none()

    def get_with_purchases(self, db: Session, id: int) -> Vendor:
        return self.get_or_404(db, id, options=[
            selectinload(Vendor.purchases).selectinload(Purchase.items).selectinload(PurchaseItem.product),
            selectinload(Vendor.purchases).selectinload(Purchase.payments),
        ])

    def create_vendor(self, db: Session, *, obj_in: VendorCreate) -> Vendor:
        if not obj_in.name or not obj_in.name.strip():
            raise InvalidOperationError("Vendor name is required")
        if obj_in.mobile and self.get_by_mobile(db, obj_in.mobile):
            raise ConflictError("Vendor with this phone number already exists")

        data = obj_in.model_dump()
        data["name"] = obj_in.name.strip()
        data["address"] = obj_in.address or ""
        vendor = self.create(db, obj_in=data)
        logger.info(f"Vendor created: {vendor.name} (id={vendor.id})")
        return vendor

    def update_vendor(self, db: Session, *, vendor: Vendor, obj_in: VendorUpdate) -> Vendor:
        changes = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes and not changes["name"].strip():
            raise InvalidOperationError("Vendor name is required")
        mobile = changes.get("mobile")
        if mobile and mobile != vendor.mobile:
            existing = self.get_by_mobile(db, mobile)
            if existing and existing.id != vendor.id:
                raise ConflictError("Vendor with this phone number already exists")
        return self.update(db, db_obj=vendor, obj_in=changes)

    def delete_vendor(self, db: Session, *, vendor: Vendor) -> Vendor:
        stmt = select(func.count(Purchase.id)).where(Purchase.vendor_id == vendor.id)
        if db.execute(stmt).scalar_one():
            logger.warning(f"Refused to delete vendor {vendor.id}: it has purchases")
            raise InvalidOperationError("Cannot delete vendor with existing purchases")
        logger.info(f"Deleting vendor: {vendor.name}")
        return self.remove(db, db_obj=vendor)


class CRUDPurchase(CRUDBase[Purchase]):
    entity_name = "Purchase"

    def __init__(self):
        super().__init__(Purchase)

    def get_full(self, db: Session, id: int) -> Purchase:
        return self.get_or_404(db, id, options=PURCHASE_LOAD)

    def get_all(self, db: Session) -> List[Purchase]:
        return self.get_multi(db, options=PURCHASE_LOAD)

    def get_by_vendor(self, db: Session, vendor_id: int) -> List[Purchase]:
        crud_vendor.get_or_404(db, vendor_id)
        stmt = (
            select(Purchase)
            .where(Purchase.vendor_id == vendor_id)
            .options(*PURCHASE_LOAD)
            .order_by(Purchase.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def create_purchase(self, db: Session, *, obj_in: PurchaseCreate) -> Purchase:
        vendor = crud_vendor.get_or_404(db, obj_in.vendor_id)

        products: Dict[int, Product] = {}
        for item in obj_in.items:
            if item.product_id not in products:
                product = db.get(Product, item.product_id)
                if product is None:
                    raise NotFoundError("Product", item.product_id)
                products[item.product_id] = product

        total = money_sum(line_total(item.quantity, item.unit_price) for item in obj_in.items)
        paid = to_money(obj_in.paid_amount)
        if paid > total:
            raise OverpaymentError(f"Paid amount ({paid}) cannot exceed total amount ({total})")

        try:
            purchase = Purchase(
                vendor_id=vendor.id,
                invoice_number=obj_in.invoice_number,
                total_amount=total,
                payment_mode=obj_in.payment_mode.value,
                notes=obj_in.notes,
            )
            if obj_in.purchase_date:
                purchase.purchase_date = as_naive_utc(obj_in.purchase_date)
            db.add(purchase)
            db.flush()

            for item in obj_in.items:
                product = products[item.product_id]
                purchase_item = PurchaseItem(
                    purchase=purchase,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=to_money(item.unit_price),
                    total_price=line_total(item.quantity, item.unit_price),
                )
                db.add(purchase_item)
                db.add(Stock(
                    product_id=product.id,
                    purchase_item=purchase_item,
                    purchase_price=to_money(item.unit_price),
                    sale_price=crud_stock.resolve_sale_price(product, item.unit_price, item.sale_price),
                    original_quantity=item.quantity,
                    quantity=item.quantity,
                ))

            if paid > ZERO:
                payment = VendorPayment(
                    purchase=purchase,
                    vendor_id=vendor.id,
                    amount=paid,
                    payment_mode=obj_in.payment_mode.value,
                    remark="Paid at purchase",
                )
                if obj_in.purchase_date:
                    payment.payment_date = purchase.purchase_date
                db.add(payment)

            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Purchase for vendor {vendor.id} rolled back")
            raise

        logger.info(
            f"Purchase {purchase.id} created for vendor {vendor.name}: "
            f"{len(obj_in.items)} items, total {total}, paid {paid}"
        )
        return self.get_full(db, purchase.id)

    def add_payment(self, db: Session, *, purchase_id: int, obj_in: PurchasePaymentCreate) -> Purchase:
        stmt = (
            select(Purchase)
            .where(Purchase.id == purchase_id)
            .options(selectinload(Purchase.payments))
            .with_for_update()
        )
        purchase = db.execute(stmt).scalar_one_or_none()
        if purchase is None:
            raise NotFoundError("Purchase", purchase_id)
        amount = to_money(obj_in.paid_amount)
        due = purchase.due_amount
        if amount > due:
            logger.warning(f"Rejected vendor payment of {amount} on purchase {purchase.id}: due {due}")
            raise OverpaymentError(
                f"Payment amount exceeds due amount. Total: {purchase.total_amount}, "
                f"Already paid: {purchase.paid_amount}, Due: {due}"
            )

        mode = obj_in.payment_mode or PaymentMode(purchase.payment_mode or PaymentMode.CASH.value)
        purchase.payments.append(VendorPayment(
            vendor_id=purchase.vendor_id,
            amount=amount,
            payment_mode=mode.value,
            remark=obj_in.remark,
        ))
        self._commit(db, f"recording payment on purchase {purchase.id}")
        logger.info(f"Vendor payment of {amount} recorded on purchase {purchase.id}")
        return self.get_full(db, purchase.id)

    # ====================
    # REPORTS
    # ====================

    def vendor_summary(self, db: Session, vendor_id: int) -> Dict[str, Any]:
        vendor = crud_vendor.get_or_404(db, vendor_id)
        purchases = self.get_by_vendor(db, vendor_id)
        total_amount = money_sum(p.total_amount for p in purchases)
        total_paid = money_sum(p.paid_amount for p in purchases)
        return {
            "vendor_id": vendor.id,
            "vendor_name": vendor.name,
            "total_purchases": len(purchases),
            "total_amount": total_amount,
            "total_paid": total_paid,
            "total_due": to_money(total_amount - total_paid),
        }

    def vendor_ledger(self, db: Session, vendor_id: int) -> Dict[str, Any]:
        """Purchases credit the vendor, payments debit; balance is what the store owes."""
        vendor = crud_vendor.get_or_404(db, vendor_id)
        purchases = self.get_by_vendor(db, vendor_id)

        rows = []
        for purchase in purchases:
            rows.append(LedgerRow(
                date=purchase.purchase_date,
                reference_id=purchase.reference,
                type=LedgerEntryType.PURCHASE,
                description=f"Purchase {purchase.reference} ({len(purchase.items)} items)",
                credit=purchase.total_amount,
                purchase_id=purchase.id,
            ))
            for payment in purchase.payments:
                rows.append(LedgerRow(
                    date=payment.payment_date,
                    reference_id=f"PAY-{payment.id}",
                    type=LedgerEntryType.PAYMENT,
                    description=f"Payment ({payment.payment_mode}) against {purchase.reference}",
                    debit=payment.amount,
                    purchase_id=purchase.id,
                    payment_id=payment.id,
                ))

        entries = build_ledger(rows, balance_side="credit")
        total_purchases = money_sum(row.credit for row in rows)
        total_paid = money_sum(row.debit for row in rows)
        return {
            "vendor": vendor,
            "entries": entries,
            "summary": {
                "total_purchases": total_purchases,
                "total_paid": total_paid,
                "total_outstanding": to_money(total_purchases - total_paid),
                "invoice_count": len(purchases),
            },
        }


crud_vendor = CRUDVendor()
crud_purchase = CRUDPurchase()
