from pydantic import BaseModel


class MedicineResponse(BaseModel):
    id: int
    brand_id: int | None
    brand_name: str
    type: str | None
    generic_name: str | None
    manufacturer: str | None

    class Config:
        from_attributes = True
