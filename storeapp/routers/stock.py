"""
Stock batches.
Sales never touch this router; they deduct FIFO through crud_stock.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storeapp.database import get_db
from storeapp.crud.stock import crud_stock
from storeapp.schemas.common import envelope
from storeapp.schemas.stock import StockCreate, StockUpdate, StockDecrease, StockResponse
from storeapp.security import get_current_user

router = APIRouter(prefix="/stock", tags=["stock"], dependencies=[Depends(get_current_user)])


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_stock(payload: StockCreate, db: Session = Depends(get_db)):
    stock = crud_stock.add_stock(db, obj_in=payload)
    stock = crud_stock.get_or_404(db, stock.id)
    return envelope("Stock added successfully", StockResponse.model_validate(stock))


@router.get("/all")
async def list_stock(db: Session = Depends(get_db)):
    stocks = crud_stock.get_all(db)
    return envelope(
        "Stock retrieved successfully",
        [StockResponse.model_validate(s) for s in stocks],
        count=len(stocks),
    )


@router.get("/summary")
async def stock_summary(db: Session = Depends(get_db)):
    summary = crud_stock.summary(db)
    summary["stocks"] = [StockResponse.model_validate(s) for s in summary["stocks"]]
    return envelope("Stock summary retrieved successfully", summary)


@router.get("/product/{product_id}")
async def stock_for_product(product_id: int, db: Session = Depends(get_db)):
    stocks = crud_stock.get_by_product(db, product_id)
    if not stocks:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No stock found for this product")
    return envelope(
        "Stock retrieved successfully",
        [StockResponse.model_validate(s) for s in stocks],
        count=len(stocks),
        total_quantity=sum(s.quantity for s in stocks),
    )


@router.put("/{stock_id}")
async def update_stock(stock_id: int, payload: StockUpdate, db: Session = Depends(get_db)):
    stock = crud_stock.get_or_404(db, stock_id)
    stock = crud_stock.update_stock(db, stock=stock, obj_in=payload)
    return envelope("Stock updated successfully", StockResponse.model_validate(stock))


@router.put("/{stock_id}/decrease")
async def decrease_stock(stock_id: int, payload: StockDecrease, db: Session = Depends(get_db)):
    stock = crud_stock.get_or_404(db, stock_id)
    stock = crud_stock.decrease(db, stock=stock, quantity_sold=payload.quantity_sold)
    return envelope("Stock decreased successfully", StockResponse.model_validate(stock))


@router.delete("/{stock_id}")
async def delete_stock(stock_id: int, db: Session = Depends(get_db)):
    stock = crud_stock.get_or_404(db, stock_id)
    crud_stock.delete_stock(db, stock=stock)
    return envelope("Stock deleted successfully")
