# pharmapos/models/pharmacies.py

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from pharmapos.database import Base


class Pharmacy(Base):
    __tablename__ = "pharmacies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    location = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
