"""
Product catalog operations.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload
import logging
from typing import Optional

from storeapp.config import settings
from storeapp.crud.base import CRUDBase
from storeapp.exceptions import ConflictError, InvalidOperationError
from storeapp.models import Product, Stock, PurchaseItem, SaleItem
from storeapp.schemas.product import ProductCreate, ProductUpdate
from storeapp.utils.money import to_money

logger = logging.getLogger(__name__)


class CRUDProduct(CRUDBase[Product]):
    entity_name = "Product"

    def __init__(self):
        super().__init__(Product)

    def get_by_name(self, db: Session, name: str) -> Optional[Product]:
        stmt = select(Product).where(Product.name == name)
        return db.execute(stmt).scalar_one_or_none()

    def get_with_stock(self, db: Session, id: int) -> Product:
        return self.get_or_404(db, id, options=[selectinload(Product.stocks)])

    def create_product(self, db: Session, *, obj_in: ProductCreate) -> Product:
        if self.get_by_name(db, obj_in.name):
            raise ConflictError("Product already exists")

        margin = obj_in.margin_percent
        if margin is None:
            margin = settings.DEFAULT_MARGIN_PERCENT

        product = self.create(db, obj_in={
            "name": obj_in.name,
            "category": obj_in.category,
            "description": obj_in.description,
            "cost_price": to_money(obj_in.cost_price),
            "margin_percent": to_money(margin),
        })
        logger.info(f"Product created: {product.name} (id={product.id})")
        return product

    def update_product(self, db: Session, *, product: Product, obj_in: ProductUpdate) -> Product:
        changes = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes and changes["name"] != product.name:
            existing = self.get_by_name(db, changes["name"])
            if existing and existing.id != product.id:
                raise ConflictError("Product already exists")
        for field in ("cost_price", "margin_percent"):
            if field in changes:
                changes[field] = to_money(changes[field])
        return self.update(db, db_obj=product, obj_in=changes)

    def delete_product(self, db: Session, *, product: Product) -> Product:
        """Delete a product that never entered stock, purchases or sales."""
        references = [
            select(func.count(Stock.id)).where(Stock.product_id == product.id),
            select(func.count(PurchaseItem.id)).where(PurchaseItem.product_id == product.id),
            select(func.count(SaleItem.id)).where(SaleItem.product_id == product.id),
        ]
        if any(db.execute(stmt).scalar_one() for stmt in references):
            logger.warning(f"Refused to delete product {product.id}: it has stock or history")
            raise InvalidOperationError("Cannot delete product with existing stock, purchases or sales")

        logger.info(f"Deleting product: {product.name}")
        return self.remove(db, db_obj=product)


crud_product = CRUDProduct()
