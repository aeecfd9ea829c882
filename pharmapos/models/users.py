# pharmapos/models/users.py

from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from pharmapos.database import Base
from pharmapos.models.pharmacies import Pharmacy

ROLE_OWNER = "owner"
ROLE_EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    # owner or employee of the pharmacy below
    role = Column(String, nullable=False, default=ROLE_EMPLOYEE)

    pharmacy_id = Column(
        Integer,
        ForeignKey("pharmacies.id"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    pharmacy = relationship(Pharmacy)

    __table_args__ = (
        CheckConstraint("role IN ('owner', 'employee')", name="ck_users_role_valid"),
    )
