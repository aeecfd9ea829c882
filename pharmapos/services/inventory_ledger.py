"""Stock reservations against the inventory table."""
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from pharmapos.core.exceptions import InsufficientStockError, NotFoundError
from pharmapos.models.inventory import Inventory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reservation:
    inventory_id: int
    medicine_id: int | None
    quantity: int
    unit_price: Decimal
    remaining: int


class InventoryLedger:
    def __init__(self, db: Session):
        self.db = db

    def reserve(self, pharmacy_id: int, inventory_id: int, quantity: int) -> Reservation:
        """
        Decrement stock by `quantity` only if at least that much is available.

        Check and decrement are one conditional UPDATE, so the row lock it
        takes is held by the caller's transaction until commit or rollback.
        The unit sale price is read by the same statement.
        """
        stmt = (
            update(Inventory)
            .where(
                Inventory.id == inventory_id,
                Inventory.pharmacy_id == pharmacy_id,
                Inventory.quantity >= quantity,
            )
            .values(
                quantity=Inventory.quantity - quantity,
                updated_at=func.now(),
            )
            .returning(
                Inventory.medicine_id,
                Inventory.quantity,
                Inventory.unit_sale_price,
            )
            .execution_options(synchronize_session=False)
        )
        row = self.db.execute(stmt).first()

        if row is not None:
            return Reservation(
                inventory_id=inventory_id,
                medicine_id=row.medicine_id,
                quantity=quantity,
                unit_price=Decimal(row.unit_sale_price),
                remaining=row.quantity,
            )

        current = self.db.execute(
            select(Inventory.pharmacy_id, Inventory.quantity).where(Inventory.id == inventory_id)
        ).first()

        if current is None or current.pharmacy_id != pharmacy_id:
            logger.info(
                f"Reservation refused: inventory {inventory_id} not found for pharmacy {pharmacy_id}"
            )
            raise NotFoundError(inventory_id)

        raise InsufficientStockError(inventory_id, quantity, current.quantity)
