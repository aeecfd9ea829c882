"""Writes sale headers and line items inside the caller's transaction."""
from typing import Sequence

from sqlalchemy import text
from sqlalchemy.orm import Session, selectinload

from pharmapos.models.registry import Sale, SaleItem
from pharmapos.services.inventory_ledger import Reservation
from pharmapos.services.pricing import PricedLine, PricedReceipt


class SaleRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_request_id(self, pharmacy_id: int, request_id: str | None) -> Sale | None:
        if not request_id:
            return None

        return (
            self.db.query(Sale)
            .options(selectinload(Sale.items))
            .filter(
                Sale.pharmacy_id == pharmacy_id,
                Sale.request_id == request_id,
            )
            .first()
        )

    def begin(self, lock_timeout_ms: int) -> None:
        """Start the unit. On PostgreSQL, bound how long a row lock may be awaited."""
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(text(f"SET LOCAL lock_timeout = '{int(lock_timeout_ms)}ms'"))

    def add_sale(
        self,
        pharmacy_id: int,
        user_id: int,
        receipt: PricedReceipt,
        lines: Sequence[PricedLine],
        reservations: dict[int, Reservation],
        request_id: str | None = None,
    ) -> Sale:
        sale = Sale(
            pharmacy_id=pharmacy_id,
            user_id=user_id,
            total_amount=receipt.total,
            discount=receipt.discount_amount,
            paid_amount=receipt.paid_amount,
            due_amount=receipt.due_amount,
            round_off=receipt.round_off,
            change_returned=receipt.change_returned,
            request_id=request_id,
        )
        self.db.add(sale)
        self.db.flush()

        # One row per requested line, even when lines share a stock row
        self.db.add_all(
            [
                SaleItem(
                    sale_id=sale.id,
                    medicine_id=reservations[line.inventory_id].medicine_id,
                    inventory_id=line.inventory_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=line.subtotal,
                )
                for line in lines
            ]
        )
        self.db.flush()

        return sale

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
