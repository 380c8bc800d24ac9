"""
SQLAlchemy 2.x models.
Paid amounts, balances and payment status are derived from the
append-only payment tables, never stored on the sale or purchase row.
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from decimal import Decimal

from storeapp.database import Base
from storeapp.utils.money import to_money, money_sum, payment_status, percent


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text)
    cost_price = Column(Numeric(10, 2), nullable=False)
    margin_percent = Column(Numeric(5, 2), nullable=False, default=Decimal("20.00"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    stocks = relationship("Stock", back_populates="product", order_by="Stock.id")
    purchase_items = relationship("PurchaseItem", back_populates="product")
    sale_items = relationship("SaleItem", back_populates="product")

    @property
    def total_stock(self) -> int:
        return sum(stock.quantity for stock in self.stocks)


class Stock(Base):
    """One batch of a product received at one purchase price."""
    __tablename__ = "stocks"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    purchase_item_id = Column(Integer, ForeignKey("purchase_items.id"))
    purchase_price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=False)
    original_quantity = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    product = relationship("Product", back_populates="stocks")
    purchase_item = relationship("PurchaseItem", back_populates="stock")
    allocations = relationship("StockAllocation", back_populates="stock")

    @property
    def sold_quantity(self) -> int:
        return self.original_quantity - self.quantity

    @property
    def cost_value(self) -> Decimal:
        return to_money(self.purchase_price * self.quantity)

    @property
    def sale_value(self) -> Decimal:
        return to_money(self.sale_price * self.quantity)

    @property
    def profit(self) -> Decimal:
        return to_money((self.sale_price - self.purchase_price) * self.quantity)

    @property
    def profit_margin(self) -> Decimal:
        return percent(self.sale_price - self.purchase_price, self.purchase_price)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    mobile = Column(String(20), unique=True, nullable=False)
    phone = Column(String(20))
    address = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    sales = relationship("Sale", back_populates="customer", order_by="Sale.id")
    payments = relationship("Payment", back_populates="customer", order_by="Payment.id")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    mobile = Column(String(20), unique=True)
    email = Column(String(255))
    address = Column(Text, default="")
    gst_number = Column(String(20))
    company_name = Column(String(150))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    purchases = relationship("Purchase", back_populates="vendor", order_by="Purchase.id")
    payments = relationship("VendorPayment", back_populates="vendor", order_by="VendorPayment.id")


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    invoice_number = Column(String(50))
    purchase_date = Column(DateTime(timezone=True), server_default=func.now())
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    payment_mode = Column(String(10))
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    vendor = relationship("Vendor", back_populates="purchases")
    items = relationship("PurchaseItem", back_populates="purchase", order_by="PurchaseItem.id")
    payments = relationship("VendorPayment", back_populates="purchase", order_by="VendorPayment.id")

    @property
    def reference(self) -> str:
        return self.invoice_number or f"PUR-{self.id}"

    @property
    def paid_amount(self) -> Decimal:
        return money_sum(payment.amount for payment in self.payments)

    @property
    def due_amount(self) -> Decimal:
        return to_money(self.total_amount - self.paid_amount)

    @property
    def payment_status(self) -> str:
        return payment_status(self.total_amount, self.paid_amount).value


class PurchaseItem(Base):
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    # Relationships
    purchase = relationship("Purchase", back_populates="items")
    product = relationship("Product", back_populates="purchase_items")
    stock = relationship("Stock", uselist=False, back_populates="purchase_item")

    @property
    def product_name(self) -> str:
        return self.product.name if self.product else None


class VendorPayment(Base):
    """Append-only: one row per amount paid to a vendor against a purchase."""
    __tablename__ = "vendor_payments"

    id = Column(Integer, primary_key=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_mode = Column(String(10), nullable=False, default="CASH")
    payment_date = Column(DateTime(timezone=True), server_default=func.now())
    remark = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    purchase = relationship("Purchase", back_populates="payments")
    vendor = relationship("Vendor", back_populates="payments")


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    invoice_number = Column(String(20), unique=True, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(10), nullable=False, default="ACTIVE")
    note = Column(String(255))
    cancel_reason = Column(Text)
    invoice_date = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    customer = relationship("Customer", back_populates="sales")
    items = relationship("SaleItem", back_populates="sale", order_by="SaleItem.id")
    payments = relationship("Payment", back_populates="sale", order_by="Payment.id")

    @property
    def total_paid(self) -> Decimal:
        return money_sum(payment.amount for payment in self.payments)

    @property
    def remaining_balance(self) -> Decimal:
        return to_money(self.total_amount - self.total_paid)

    @property
    def payment_status(self) -> str:
        return payment_status(self.total_amount, self.total_paid).value

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_cost(self) -> Decimal:
        return money_sum(item.cost_amount for item in self.items)

    @property
    def total_profit(self) -> Decimal:
        return to_money(self.total_amount - self.total_cost)

    @property
    def last_payment_date(self):
        return self.payments[-1].payment_date if self.payments else None


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    selling_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    cost_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    # Relationships
    sale = relationship("Sale", back_populates="items")
    product = relationship("Product", back_populates="sale_items")
    allocations = relationship("StockAllocation", back_populates="sale_item", order_by="StockAllocation.id")

    @property
    def product_name(self) -> str:
        return self.product.name if self.product else None

    @property
    def profit(self) -> Decimal:
        return to_money(self.total_price - self.cost_amount)


class StockAllocation(Base):
    """Quantity a sale item took from one stock batch."""
    __tablename__ = "stock_allocations"

    id = Column(Integer, primary_key=True)
    sale_item_id = Column(Integer, ForeignKey("sale_items.id"), nullable=False, index=True)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(10, 2), nullable=False)

    # Relationships
    sale_item = relationship("SaleItem", back_populates="allocations")
    stock = relationship("Stock", back_populates="allocations")


class Payment(Base):
    """Append-only: one row per amount a customer paid against a sale."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_mode = Column(String(10), nullable=False, default="CASH")
    payment_date = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    remark = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sale = relationship("Sale", back_populates="payments")
    customer = relationship("Customer", back_populates="payments")
