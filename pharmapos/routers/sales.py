# =========================================================
# SALES ROUTER
#
# POST runs the sale transaction engine. Engine errors are
# SaleError subclasses, turned into responses by the handlers
# registered in main.py.
# =========================================================

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from sqlalchemy.orm import Session, selectinload

from pharmapos.database import get_db
from pharmapos.core.auth import get_current_user
from pharmapos.core.rate_limiter import limiter
from pharmapos.models.sales import Sale
from pharmapos.schemas.sale import SaleCreate, SaleResponse
from pharmapos.services.sale_transaction import SaleLineRequest, SaleTransactionCoordinator

router = APIRouter(prefix="/sales", tags=["Sales"])


# =========================================================
# CREATE SALE
# =========================================================
@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_sale(
    request: Request,
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    coordinator = SaleTransactionCoordinator(db)

    return coordinator.process_sale(
        pharmacy_id=current_user.pharmacy_id,
        user_id=current_user.id,
        items=[
            SaleLineRequest(
                inventory_id=item.inventory_id,
                quantity=item.quantity,
                medicine_id=item.medicine_id,
            )
            for item in sale_data.items
        ],
        discount_percent=sale_data.discount_percent,
        paid_amount=sale_data.paid_amount,
        round_off=sale_data.round_off,
        request_id=sale_data.request_id,
    )


# =========================================================
# LIST SALES
# =========================================================
@router.get("", response_model=list[SaleResponse])
def list_sales(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.pharmacy_id == current_user.pharmacy_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


# =========================================================
# GET SINGLE SALE
# =========================================================
@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    sale = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(
            Sale.id == sale_id,
            Sale.pharmacy_id == current_user.pharmacy_id,
        )
        .first()
    )

    if not sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sale not found",
        )

    return sale
