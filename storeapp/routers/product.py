from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storeapp.database import get_db
from storeapp.crud.product import crud_product
from storeapp.schemas.common import envelope
from storeapp.schemas.product import ProductCreate, ProductUpdate, ProductResponse, ProductDetailResponse
from storeapp.security import get_current_user

router = APIRouter(prefix="/product", tags=["product"], dependencies=[Depends(get_current_user)])


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_product(payload: ProductCreate, db: Session = Depends(get_db)):
    product = crud_product.create_product(db, obj_in=payload)
    return envelope("Product added successfully", ProductResponse.model_validate(product))


@router.get("/all")
async def list_products(db: Session = Depends(get_db)):
    products = crud_product.get_multi(db)
    return envelope(
        "Products retrieved successfully",
        [ProductResponse.model_validate(p) for p in products],
        count=len(products),
    )


@router.get("/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    """Product with every stock batch and the total remaining quantity."""
    product = crud_product.get_with_stock(db, product_id)
    return envelope("Product retrieved successfully", ProductDetailResponse.model_validate(product))


@router.put("/update/{product_id}")
async def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    product = crud_product.get_or_404(db, product_id)
    product = crud_product.update_product(db, product=product, obj_in=payload)
    return envelope("Product updated successfully", ProductResponse.model_validate(product))


@router.delete("/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db)):
    product = crud_product.get_or_404(db, product_id)
    crud_product.delete_product(db, product=product)
    return envelope("Product deleted successfully")
