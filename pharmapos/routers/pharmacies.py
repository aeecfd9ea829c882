# pharmapos/routers/pharmacies.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pharmapos.database import get_db
from pharmapos.core.auth import get_current_user, get_owner_user
from pharmapos.models.pharmacies import Pharmacy
from pharmapos.schemas.pharmacy import PharmacyResponse, PharmacyUpdate

router = APIRouter(
    prefix="/pharmacies",
    tags=["Pharmacies"],
)


def _get_pharmacy(db: Session, pharmacy_id: int) -> Pharmacy:
    pharmacy = db.query(Pharmacy).filter(Pharmacy.id == pharmacy_id).first()

    if not pharmacy:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Pharmacy not found",
        )

    return pharmacy


@router.get("/me", response_model=PharmacyResponse)
def get_my_pharmacy(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return _get_pharmacy(db, current_user.pharmacy_id)


@router.put("/me", response_model=PharmacyResponse)
def update_my_pharmacy(
    pharmacy_data: PharmacyUpdate,
    db: Session = Depends(get_db),
    owner=Depends(get_owner_user),
):
    pharmacy = _get_pharmacy(db, owner.pharmacy_id)

    if pharmacy_data.name is not None:
        pharmacy.name = pharmacy_data.name

    if pharmacy_data.address is not None:
        pharmacy.address = pharmacy_data.address

    if pharmacy_data.location is not None:
        pharmacy.location = pharmacy_data.location

    db.commit()
    db.refresh(pharmacy)

    return pharmacy
