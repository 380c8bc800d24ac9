"""
Vendors and purchases.
A purchase creates one stock batch per item; vendor payments are append-only.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from datetime import datetime

from storeapp.database import get_db
from storeapp.crud.vendor import crud_vendor, crud_purchase
from storeapp.schemas.common import envelope
from storeapp.schemas.vendor import (
    VendorCreate, VendorUpdate, VendorResponse, VendorDetailResponse,
    PurchaseCreate, PurchasePaymentCreate, PurchaseResponse,
)
from storeapp.security import get_current_user
from storeapp.utils.ledger import ledger_to_csv

router = APIRouter(prefix="/vendor", tags=["vendor"], dependencies=[Depends(get_current_user)])

# ====================
# PURCHASES
# ====================

@router.post("/purchase/create", status_code=status.HTTP_201_CREATED)
async def create_purchase(payload: PurchaseCreate, db: Session = Depends(get_db)):
    purchase = crud_purchase.create_purchase(db, obj_in=payload)
    return envelope("Purchase created successfully", PurchaseResponse.model_validate(purchase))


@router.get("/purchase/all")
async def list_purchases(db: Session = Depends(get_db)):
    purchases = crud_purchase.get_all(db)
    return envelope(
        "Purchases retrieved successfully",
        [PurchaseResponse.model_validate(p) for p in purchases],
        count=len(purchases),
    )


@router.get("/purchase/{purchase_id}")
async def get_purchase(purchase_id: int, db: Session = Depends(get_db)):
    purchase = crud_purchase.get_full(db, purchase_id)
    return envelope("Purchase retrieved successfully", PurchaseResponse.model_validate(purchase))


@router.put("/purchase/payment/{purchase_id}")
async def pay_purchase(purchase_id: int, payload: PurchasePaymentCreate, db: Session = Depends(get_db)):
    purchase = crud_purchase.add_payment(db, purchase_id=purchase_id, obj_in=payload)
    return envelope("Payment recorded successfully", PurchaseResponse.model_validate(purchase))


@router.get("/purchases/vendor/{vendor_id}")
async def purchases_for_vendor(vendor_id: int, db: Session = Depends(get_db)):
    purchases = crud_purchase.get_by_vendor(db, vendor_id)
    return envelope(
        "Vendor purchases retrieved successfully",
        [PurchaseResponse.model_validate(p) for p in purchases],
        count=len(purchases),
    )

# ====================
# REPORTS
# ====================

@router.get("/summary/{vendor_id}")
async def vendor_summary(vendor_id: int, db: Session = Depends(get_db)):
    return envelope("Vendor summary retrieved successfully", crud_purchase.vendor_summary(db, vendor_id))


@router.get("/ledger/{vendor_id}")
async def vendor_ledger(vendor_id: int, db: Session = Depends(get_db)):
    """Purchases as credits, payments as debits, running balance owed to the vendor."""
    ledger = crud_purchase.vendor_ledger(db, vendor_id)
    return envelope(
        "Vendor ledger retrieved successfully",
        {
            "vendor": VendorResponse.model_validate(ledger["vendor"]),
            "entries": ledger["entries"],
            "summary": ledger["summary"],
        },
    )


@router.get("/ledger/{vendor_id}/export")
async def export_vendor_ledger(vendor_id: int, db: Session = Depends(get_db)):
    ledger = crud_purchase.vendor_ledger(db, vendor_id)
    output = ledger_to_csv(ledger["entries"])
    filename = f"vendor_{vendor_id}_ledger_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    return StreamingResponse(
        output,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

# ====================
# VENDORS
# ====================

@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_vendor(payload: VendorCreate, db: Session = Depends(get_db)):
    vendor = crud_vendor.create_vendor(db, obj_in=payload)
    return envelope("Vendor added successfully", VendorResponse.model_validate(vendor))


@router.get("/all")
async def list_vendors(db: Session = Depends(get_db)):
    vendors = crud_vendor.get_multi(db)
    return envelope(
        "Vendors retrieved successfully",
        [VendorResponse.model_validate(v) for v in vendors],
        count=len(vendors),
    )


@router.get("/{vendor_id}")
async def get_vendor(vendor_id: int, db: Session = Depends(get_db)):
    vendor = crud_vendor.get_with_purchases(db, vendor_id)
    return envelope("Vendor retrieved successfully", VendorDetailResponse.model_validate(vendor))


@router.put("/update/{vendor_id}")
async def update_vendor(vendor_id: int, payload: VendorUpdate, db: Session = Depends(get_db)):
    vendor = crud_vendor.get_or_404(db, vendor_id)
    vendor = crud_vendor.update_vendor(db, vendor=vendor, obj_in=payload)
    return envelope("Vendor updated successfully", VendorResponse.model_validate(vendor))


@router.delete("/delete/{vendor_id}")
async def delete_vendor(vendor_id: int, db: Session = Depends(get_db)):
    vendor = crud_vendor.get_or_404(db, vendor_id)
    crud_vendor.delete_vendor(db, vendor=vendor)
    return envelope("Vendor deleted successfully")
