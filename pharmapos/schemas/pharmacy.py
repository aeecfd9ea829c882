from pydantic import BaseModel, Field
from datetime import datetime


class PharmacyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    address: str | None = None
    location: str | None = None


class PharmacyResponse(BaseModel):
    id: int
    name: str
    address: str | None
    location: str | None
    created_at: datetime | None

    class Config:
        from_attributes = True
