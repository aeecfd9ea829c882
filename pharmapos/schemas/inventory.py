from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date, datetime


class InventoryCreate(BaseModel):
    # Either a catalogue medicine or a custom item named by brand_name
    medicine_id: int | None = None
    brand_name: str | None = None
    generic_name: str | None = None
    manufacturer: str | None = None
    type: str | None = None

    quantity: int = Field(..., gt=0)
    unit_cost_price: Decimal = Field(..., ge=0, lt=100_000_000, decimal_places=2)
    unit_sale_price: Decimal = Field(..., gt=0, lt=100_000_000, decimal_places=2)
    expiry_date: date | None = None

class InventoryUpdate(BaseModel):
    quantity: int | None = Field(None, ge=0)
    unit_cost_price: Decimal | None = Field(None, ge=0, lt=100_000_000, decimal_places=2)
    unit_sale_price: Decimal | None = Field(None, gt=0, lt=100_000_000, decimal_places=2)
    expiry_date: date | None = None

class StockUpdate(BaseModel):
    quantity: int = Field(..., ge=0)

class InventoryResponse(BaseModel):
    id: int
    pharmacy_id: int
    medicine_id: int | None
    display_name: str
    quantity: int
    unit_cost_price: Decimal
    unit_sale_price: Decimal
    expiry_date: date | None
    updated_at: datetime | None

    class Config:
        from_attributes = True

class ExpiryAlertResponse(BaseModel):
    inventory_id: int
    brand_name: str
    quantity: int
    expiry_date: date
