# =========================================================
# REPORTS ROUTER
#
# Read-only aggregates over committed sales.
# Revenue is total_amount - discount, summed per pharmacy.
# =========================================================

from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pharmapos.database import get_db
from pharmapos.core.auth import get_current_user, get_owner_user
from pharmapos.models.sales import Sale
from pharmapos.schemas.report import SalesSummaryResponse
from pharmapos.schemas.sale import SaleResponse

router = APIRouter(prefix="/reports", tags=["Reports"])


# =========================================================
# CORE SALES SUMMARY CALCULATION
# =========================================================
def _calculate_summary(
    db: Session,
    pharmacy_id: int,
    start_date: date,
    end_date: date,
):
    start_dt = datetime.combine(start_date, datetime.min.time())
    end_dt = datetime.combine(end_date, datetime.max.time())

    revenue, sales_count = (
        db.query(
            func.coalesce(func.sum(Sale.total_amount - Sale.discount), 0),
            func.count(Sale.id),
        )
        .filter(
            Sale.pharmacy_id == pharmacy_id,
            Sale.created_at.between(start_dt, end_dt),
        )
        .one()
    )

    return {
        "revenue": Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
        "sales_count": sales_count or 0,
    }


# =========================================================
# DAILY SUMMARY
# =========================================================
@router.get("/daily", response_model=SalesSummaryResponse)
def daily_report(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    today = datetime.now(timezone.utc).date()

    return _calculate_summary(db, current_user.pharmacy_id, today, today)


# =========================================================
# MONTHLY SUMMARY (MONTH TO DATE)
# =========================================================
@router.get("/monthly", response_model=SalesSummaryResponse)
def monthly_report(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    today = datetime.now(timezone.utc).date()

    return _calculate_summary(db, current_user.pharmacy_id, today.replace(day=1), today)


# =========================================================
# SALES REPORT WITH ITEMS (OWNER ONLY)
# =========================================================
@router.get("/sales", response_model=list[SaleResponse])
def sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    owner=Depends(get_owner_user),
):
    if start_date and end_date and end_date < start_date:
        raise HTTPException(
            status_code=400,
            detail="end_date cannot be before start_date",
        )

    query = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.pharmacy_id == owner.pharmacy_id)
    )

    if start_date:
        query = query.filter(Sale.created_at >= datetime.combine(start_date, datetime.min.time()))

    if end_date:
        query = query.filter(Sale.created_at <= datetime.combine(end_date, datetime.max.time()))

    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()
