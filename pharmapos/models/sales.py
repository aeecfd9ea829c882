# models/sales.py

from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from pharmapos.database import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    pharmacy_id = Column(Integer, ForeignKey("pharmacies.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Sum of line subtotals, before discount and round-off
    total_amount = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    due_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    round_off = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    change_returned = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Client supplied key, lets a retried request find the sale it already made
    request_id = Column(String(64), nullable=True)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )


    __table_args__ = (
        Index("ix_sales_pharmacy_created", "pharmacy_id", "created_at"),
        UniqueConstraint("pharmacy_id", "request_id", name="uq_pharmacy_request_id"),
        CheckConstraint("due_amount >= 0", name="ck_sales_due_non_negative"),
        CheckConstraint("change_returned >= 0", name="ck_sales_change_non_negative"),
    )

    @property
    def net_payable(self) -> Decimal:
        net = Decimal(self.total_amount) - Decimal(self.discount) + Decimal(self.round_off)
        return max(Decimal("0.00"), net)
