# pharmapos/models/inventory.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pharmapos.database import Base
from pharmapos.models.medicines import Medicine


class Inventory(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    pharmacy_id = Column(Integer, ForeignKey("pharmacies.id", ondelete="CASCADE"), nullable=False, index=True)

    # NULL for custom items that are not in the medicine catalogue
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=True, index=True)
    brand_name = Column(String, nullable=True)
    generic_name = Column(String, nullable=True)
    manufacturer = Column(String, nullable=True)
    type = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_cost_price = Column(Numeric(12, 2), nullable=False)
    unit_sale_price = Column(Numeric(12, 2), nullable=False)
    expiry_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    medicine = relationship(Medicine)

    __table_args__ = (
        Index("ix_inventory_pharmacy_expiry", "pharmacy_id", "expiry_date"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        CheckConstraint("unit_cost_price >= 0", name="ck_inventory_cost_price_non_negative"),
        CheckConstraint("unit_sale_price >= 0", name="ck_inventory_sale_price_non_negative"),
    )

    @property
    def display_name(self):
        if self.medicine is not None:
            return self.medicine.brand_name
        return self.brand_name or "Custom Medicine"
