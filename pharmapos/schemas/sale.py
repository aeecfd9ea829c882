# schemas/sale.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List
from decimal import Decimal

class SaleItemCreate(BaseModel):
    inventory_id: int
    medicine_id: int | None = None
    # Sign is checked by the sale engine so it reports a validation_error
    quantity: int = Field(..., le=2**31 - 1)

class SaleCreate(BaseModel):
    items: List[SaleItemCreate]
    discount_percent: Decimal = Field(Decimal("0"), max_digits=5, decimal_places=2)
    paid_amount: Decimal = Field(Decimal("0"), max_digits=12, decimal_places=2)
    round_off: Decimal = Field(Decimal("0"), max_digits=12, decimal_places=2)
    request_id: str | None = Field(None, max_length=64)

class SaleItemResponse(BaseModel):
    inventory_id: int
    medicine_id: int | None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True

class SaleResponse(BaseModel):
    id: int
    pharmacy_id: int
    user_id: int | None
    total_amount: Decimal
    discount: Decimal
    round_off: Decimal
    net_payable: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    change_returned: Decimal
    created_at: datetime
    items: List[SaleItemResponse]

    class Config:
        from_attributes = True
