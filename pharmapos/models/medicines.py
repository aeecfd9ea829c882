# pharmapos/models/medicines.py

from sqlalchemy import Column, Index, Integer, String

from pharmapos.database import Base


class Medicine(Base):
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, unique=True, nullable=True)
    brand_name = Column(String, nullable=False)
    type = Column(String, nullable=True)
    generic_name = Column(String, nullable=True)
    manufacturer = Column(String, nullable=True)

    __table_args__ = (
        Index("ix_medicines_brand_name", "brand_name"),
        Index("ix_medicines_generic_name", "generic_name"),
    )
