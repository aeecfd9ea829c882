# pharmapos/routers/medicines.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from pharmapos.database import get_db
from pharmapos.core.auth import get_current_user
from pharmapos.models.medicines import Medicine
from pharmapos.schemas.medicine import MedicineResponse

router = APIRouter(
    prefix="/medicines",
    tags=["Medicines"],
)


@router.get("", response_model=list[MedicineResponse])
def search_medicines(
    q: str = Query("", max_length=100),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Medicine)

    term = q.strip()
    if term:
        query = query.filter(
            or_(
                Medicine.brand_name.ilike(f"%{term}%"),
                Medicine.generic_name.ilike(f"%{term}%"),
            )
        )

    return query.order_by(Medicine.brand_name).limit(limit).all()
