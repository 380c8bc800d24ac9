"""
Typed domain errors.

Every error carries a machine-readable ``code`` and the HTTP status the
API answers with, so handlers in main.py can render them without
parsing messages:

    StoreError
    +-- NotFoundError            404
    +-- ConflictError            400  duplicate name / mobile / email
    +-- InvalidOperationError    400  state does not allow the operation
    +-- InsufficientStockError   400  FIFO deduction cannot be covered
    +-- OverpaymentError         400  payment larger than the remaining due
"""
from typing import Optional


class StoreError(Exception):
    code = "STORE_ERROR"
    status_code = 400

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(StoreError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(StoreError):
    code = "CONFLICT"


class InvalidOperationError(StoreError):
    code = "INVALID_OPERATION"


class InsufficientStockError(StoreError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, requested: {requested}"
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class OverpaymentError(StoreError):
    code = "OVERPAYMENT"
