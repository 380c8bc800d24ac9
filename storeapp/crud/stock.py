"""
Stock batch operations with FIFO consumption:
- Oldest batch (created_at, then id) is consumed first
- Batches are locked FOR UPDATE while a sale deducts from them
- Every batch touched by a sale is recorded as a StockAllocation
- Deductions only flush; the caller owns the transaction
"""
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Any

from storeapp.crud.base import CRUDBase
from storeapp.exceptions import InsufficientStockError, InvalidOperationError, NotFoundError
from storeapp.models import Product, Stock, StockAllocation, Sale, SaleItem
from storeapp.schemas.stock import StockCreate, StockUpdate
from storeapp.utils.money import to_money, money_sum, price_with_margin, ZERO

logger = logging.getLogger(__name__)


class CRUDStock(CRUDBase[Stock]):
    entity_name = "Stock"

    def __init__(self):
        super().__init__(Stock)

    # ====================
    # BATCHES
    # ====================

    def add_stock(self, db: Session, *, obj_in: StockCreate) -> Stock:
        product = db.get(Product, obj_in.product_id)
        if product is None:
            raise NotFoundError("Product", obj_in.product_id)

        stock = self.create(db, obj_in={
            "product_id": product.id,
            "purchase_price": to_money(obj_in.purchase_price),
            "sale_price": self.resolve_sale_price(product, obj_in.purchase_price, obj_in.sale_price),
            "original_quantity": obj_in.quantity,
            "quantity": obj_in.quantity,
        })
        logger.info(f"Stock batch {stock.id} added: {stock.quantity} x {product.name}")
        return stock

    @staticmethod
    def resolve_sale_price(product: Product, purchase_price, sale_price=None) -> Decimal:
        """Explicit sale price, otherwise purchase price plus the product margin."""
        if sale_price is not None:
            return to_money(sale_price)
        return price_with_margin(purchase_price, product.margin_percent)

    def get_all(self, db: Session) -> List[Stock]:
        return self.get_multi(db, options=[selectinload(Stock.product)])

    def get_by_product(self, db: Session, product_id: int) -> List[Stock]:
        if db.get(Product, product_id) is None:
            raise NotFoundError("Product", product_id)
        stmt = (
            select(Stock)
            .where(Stock.product_id == product_id)
            .options(selectinload(Stock.product))
            .order_by(Stock.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def update_stock(self, db: Session, *, stock: Stock, obj_in: StockUpdate) -> Stock:
        changes = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        for field in ("purchase_price", "sale_price"):
            if field in changes:
                changes[field] = to_money(changes[field])
        quantity = changes.get("quantity")
        if quantity is not None and quantity > stock.original_quantity:
            # A manual top-up grows the batch itself
            changes["original_quantity"] = quantity
        return self.update(db, db_obj=stock, obj_in=changes)

    def decrease(self, db: Session, *, stock: Stock, quantity_sold: int) -> Stock:
        if stock.quantity < quantity_sold:
            raise InvalidOperationError(
                f"Insufficient stock. Available: {stock.quantity}, Requested: {quantity_sold}"
            )
        return self.update(db, db_obj=stock, obj_in={"quantity": stock.quantity - quantity_sold})

    def delete_stock(self, db: Session, *, stock: Stock) -> Stock:
        stmt = select(func.count(StockAllocation.id)).where(StockAllocation.stock_id == stock.id)
        if db.execute(stmt).scalar_one():
            raise InvalidOperationError("Cannot delete stock that has already been sold from")
        return self.remove(db, db_obj=stock)

    # ====================
    # FIFO
    # ====================

    def available_quantity(self, db: Session, product_id: int) -> int:
        stmt = select(func.coalesce(func.sum(Stock.quantity), 0)).where(Stock.product_id == product_id)
        return int(db.execute(stmt).scalar_one())

    def oldest_sale_price(self, db: Session, product_id: int) -> Optional[Decimal]:
        """Sale price of the batch FIFO would consume next."""
        stmt = (
            select(Stock)
            .where(Stock.product_id == product_id, Stock.quantity > 0)
            .order_by(Stock.created_at.asc(), Stock.id.asc())
            .limit(1)
        )
        batch = db.execute(stmt).scalar_one_or_none()
        return batch.sale_price if batch else None

    def deduct_fifo(self, db: Session, *, product: Product, quantity: int, sale_item: SaleItem) -> Decimal:
        """
        Take ``quantity`` units of ``product`` from its oldest batches.

        Nothing is deducted unless the batches together cover the request.
        Returns the cost of the units taken, also stored on the sale item.
        """
        stmt = (
            select(Stock)
            .where(Stock.product_id == product.id, Stock.quantity > 0)
            .order_by(Stock.created_at.asc(), Stock.id.asc())
            .with_for_update()
        )
        batches = db.execute(stmt).scalars().all()

        available = sum(batch.quantity for batch in batches)
        if available < quantity:
            logger.warning(f"Insufficient stock for {product.name}: available {available}, requested {quantity}")
            raise InsufficientStockError(product.name, available, quantity)

        remaining = quantity
        cost = ZERO
        for batch in batches:
            if remaining <= 0:
                break
            take = min(batch.quantity, remaining)
            if take <= 0:
                continue
            batch.quantity -= take
            db.add(StockAllocation(
                sale_item=sale_item,
                stock=batch,
                quantity=take,
                unit_cost=batch.purchase_price,
            ))
            cost += batch.purchase_price * take
            remaining -= take

        sale_item.cost_amount = to_money(cost)
        db.flush()
        logger.info(f"Deducted {quantity} x {product.name} from stock (cost {sale_item.cost_amount})")
        return sale_item.cost_amount

    def restock(self, db: Session, *, sale: Sale) -> int:
        """Return every unit a sale took to the batch it came from."""
        returned = 0
        for item in sale.items:
            for allocation in item.allocations:
                batch = allocation.stock
                batch.quantity += allocation.quantity
                # The batch may have been topped up by hand since the sale
                if batch.quantity > batch.original_quantity:
                    batch.original_quantity = batch.quantity
                returned += allocation.quantity
        db.flush()
        logger.info(f"Restocked {returned} units from sale {sale.invoice_number}")
        return returned

    # ====================
    # SUMMARY
    # ====================

    def summary(self, db: Session) -> Dict[str, Any]:
        stocks = self.get_all(db)

        by_product: Dict[int, Dict[str, Any]] = {}
        for stock in stocks:
            row = by_product.setdefault(stock.product_id, {
                "product_id": stock.product_id,
                "product_name": stock.product.name,
                "product_category": stock.product.category,
                "batches": 0,
                "quantity": 0,
                "cost_value": ZERO,
                "sale_value": ZERO,
            })
            row["batches"] += 1
            row["quantity"] += stock.quantity
            row["cost_value"] = to_money(row["cost_value"] + stock.cost_value)
            row["sale_value"] = to_money(row["sale_value"] + stock.sale_value)

        total_cost_value = money_sum(stock.cost_value for stock in stocks)
        total_sale_value = money_sum(stock.sale_value for stock in stocks)
        return {
            "total_items": len(stocks),
            "total_quantity": sum(stock.quantity for stock in stocks),
            "total_cost_value": total_cost_value,
            "total_sale_value": total_sale_value,
            "total_potential_profit": to_money(total_sale_value - total_cost_value),
            "stocks": stocks,
            "products": sorted(by_product.values(), key=lambda row: row["product_name"]),
        }


crud_stock = CRUDStock()
