# pharmapos/routers/inventory.py

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from pharmapos.database import get_db
from pharmapos.core.auth import get_current_user
from pharmapos.models.inventory import Inventory
from pharmapos.models.medicines import Medicine
from pharmapos.schemas.inventory import (
    ExpiryAlertResponse,
    InventoryCreate,
    InventoryUpdate,
    InventoryResponse,
    StockUpdate,
)

router = APIRouter(
    prefix="/inventory",
    tags=["Inventory"],
)


def _get_owned_inventory(db: Session, inventory_id: int, pharmacy_id: int) -> Inventory:
    # Rows of other pharmacies answer 404 like missing ones
    inventory = (
        db.query(Inventory)
        .filter(
            Inventory.id == inventory_id,
            Inventory.pharmacy_id == pharmacy_id,
        )
        .first()
    )

    if not inventory:
        raise HTTPException(status_code=404, detail="Inventory not found")

    return inventory


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
def add_inventory(
    inventory_data: InventoryCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    inventory = Inventory(
        pharmacy_id=current_user.pharmacy_id,
        quantity=inventory_data.quantity,
        unit_cost_price=inventory_data.unit_cost_price,
        unit_sale_price=inventory_data.unit_sale_price,
        expiry_date=inventory_data.expiry_date,
    )

    if inventory_data.medicine_id:
        medicine = db.query(Medicine).filter(Medicine.id == inventory_data.medicine_id).first()

        if not medicine:
            raise HTTPException(status_code=400, detail="Invalid medicine_id")

        inventory.medicine_id = medicine.id
        inventory.brand_name = medicine.brand_name
        inventory.generic_name = medicine.generic_name
        inventory.manufacturer = medicine.manufacturer
        inventory.type = medicine.type
    else:
        if not inventory_data.brand_name:
            raise HTTPException(
                status_code=400,
                detail="brand_name is required for custom medicine",
            )

        inventory.brand_name = inventory_data.brand_name
        inventory.generic_name = inventory_data.generic_name
        inventory.manufacturer = inventory_data.manufacturer
        inventory.type = inventory_data.type

    try:
        db.add(inventory)
        db.commit()
        db.refresh(inventory)
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to add inventory")

    return inventory


@router.put("/{inventory_id}", response_model=InventoryResponse)
def update_inventory(
    inventory_id: int,
    inventory_data: InventoryUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    inventory = _get_owned_inventory(db, inventory_id, current_user.pharmacy_id)

    if inventory_data.quantity is not None:
        inventory.quantity = inventory_data.quantity

    if inventory_data.unit_cost_price is not None:
        inventory.unit_cost_price = inventory_data.unit_cost_price

    if inventory_data.unit_sale_price is not None:
        inventory.unit_sale_price = inventory_data.unit_sale_price

    if inventory_data.expiry_date is not None:
        inventory.expiry_date = inventory_data.expiry_date

    db.commit()
    db.refresh(inventory)

    return inventory


@router.patch("/{inventory_id}/stock", response_model=InventoryResponse)
def update_stock(
    inventory_id: int,
    stock_data: StockUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    inventory = _get_owned_inventory(db, inventory_id, current_user.pharmacy_id)

    inventory.quantity = stock_data.quantity

    db.commit()
    db.refresh(inventory)

    return inventory


@router.get("", response_model=list[InventoryResponse])
def list_inventory(
    q: str = Query("", max_length=100),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Inventory).filter(Inventory.pharmacy_id == current_user.pharmacy_id)

    term = q.strip()
    if term:
        query = query.filter(
            or_(
                Inventory.brand_name.ilike(f"%{term}%"),
                Inventory.generic_name.ilike(f"%{term}%"),
            )
        )

    return query.order_by(Inventory.id).all()


@router.get("/expiry-alerts", response_model=list[ExpiryAlertResponse])
def expiry_alerts(
    days: int = Query(30, ge=1, le=3650),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    horizon = datetime.now(timezone.utc).date() + timedelta(days=days)

    rows = (
        db.query(Inventory)
        .filter(
            Inventory.pharmacy_id == current_user.pharmacy_id,
            Inventory.quantity > 0,
            Inventory.expiry_date.isnot(None),
            Inventory.expiry_date <= horizon,
        )
        .order_by(Inventory.expiry_date.asc())
        .all()
    )

    return [
        ExpiryAlertResponse(
            inventory_id=row.id,
            brand_name=row.display_name,
            quantity=row.quantity,
            expiry_date=row.expiry_date,
        )
        for row in rows
    ]
