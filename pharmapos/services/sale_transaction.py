"""
Sale transaction engine.

validate -> reserve stock (ascending inventory id) -> price -> write sale
and items -> commit. Every step after validation runs in one database
transaction; any failure rolls the whole transaction back.
"""
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from pharmapos.core.config import settings
from pharmapos.core.exceptions import (
    PersistenceError,
    SaleError,
    SaleOutcome,
    SaleValidationError,
)
from pharmapos.models.sales import Sale
from pharmapos.services.inventory_ledger import InventoryLedger, Reservation
from pharmapos.services.pricing import PricedLine, price_receipt, validate_basket
from pharmapos.services.sale_repository import SaleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleLineRequest:
    inventory_id: int
    quantity: int
    medicine_id: int | None = None


def aggregate_demand(items: Sequence[SaleLineRequest]) -> "OrderedDict[int, int]":
    """Total requested quantity per stock row, keyed in ascending inventory id."""
    demand: dict[int, int] = {}
    for item in items:
        demand[item.inventory_id] = demand.get(item.inventory_id, 0) + item.quantity
    return OrderedDict(sorted(demand.items()))


class SaleTransactionCoordinator:
    def __init__(
        self,
        db: Session,
        ledger: InventoryLedger | None = None,
        repository: SaleRepository | None = None,
        lock_timeout_ms: int | None = None,
        max_attempts: int | None = None,
        retry_backoff_ms: int | None = None,
    ):
        self.db = db
        self.ledger = ledger or InventoryLedger(db)
        self.repository = repository or SaleRepository(db)
        self.lock_timeout_ms = (
            settings.SALE_LOCK_TIMEOUT_MS if lock_timeout_ms is None else lock_timeout_ms
        )
        self.max_attempts = max(
            1, settings.SALE_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        self.retry_backoff_ms = (
            settings.SALE_RETRY_BACKOFF_MS if retry_backoff_ms is None else retry_backoff_ms
        )

    def process_sale(
        self,
        pharmacy_id: int,
        user_id: int,
        items: Sequence[SaleLineRequest],
        discount_percent=Decimal("0"),
        paid_amount=Decimal("0"),
        round_off=Decimal("0"),
        request_id: str | None = None,
    ) -> Sale:
        try:
            validate_basket([item.quantity for item in items], paid_amount, discount_percent, round_off)
        except SaleValidationError as exc:
            logger.info(f"Sale {SaleOutcome.REJECTED.value} for pharmacy {pharmacy_id}: {exc.message}")
            raise

        existing = self.repository.find_by_request_id(pharmacy_id, request_id)
        if existing is not None:
            logger.info(f"Sale {existing.id} replayed for request {request_id}")
            return existing

        demand = aggregate_demand(items)
        attempt = 0

        while True:
            attempt += 1
            try:
                return self._run_unit(
                    pharmacy_id,
                    user_id,
                    items,
                    demand,
                    discount_percent,
                    paid_amount,
                    round_off,
                    request_id,
                )

            except OperationalError as exc:
                # Lock timeout, deadlock or a busy database: nothing was kept
                self.repository.rollback()
                if attempt >= self.max_attempts:
                    logger.error(
                        f"Sale {SaleOutcome.ABORTED.value} for pharmacy {pharmacy_id} "
                        f"after {attempt} attempts: {exc.orig}"
                    )
                    raise PersistenceError() from exc

                logger.warning(
                    f"Transient failure on sale for pharmacy {pharmacy_id} "
                    f"(attempt {attempt}/{self.max_attempts}): {exc.orig}"
                )
                time.sleep(self.retry_backoff_ms * (2 ** (attempt - 1)) / 1000)

            except IntegrityError as exc:
                self.repository.rollback()
                # Identical request committed concurrently
                existing = self.repository.find_by_request_id(pharmacy_id, request_id)
                if existing is not None:
                    logger.info(f"Sale {existing.id} replayed for request {request_id}")
                    return existing

                logger.error(f"Sale {SaleOutcome.ABORTED.value} for pharmacy {pharmacy_id}: {exc.orig}")
                raise PersistenceError() from exc

            except SQLAlchemyError as exc:
                self.repository.rollback()
                logger.exception(f"Sale {SaleOutcome.ABORTED.value} for pharmacy {pharmacy_id}")
                raise PersistenceError() from exc

    def _run_unit(
        self,
        pharmacy_id,
        user_id,
        items,
        demand,
        discount_percent,
        paid_amount,
        round_off,
        request_id,
    ) -> Sale:
        reservations: dict[int, Reservation] = {}

        try:
            self.repository.begin(self.lock_timeout_ms)

            for inventory_id, quantity in demand.items():
                reservations[inventory_id] = self.ledger.reserve(pharmacy_id, inventory_id, quantity)

            for item in items:
                reserved = reservations[item.inventory_id]
                if item.medicine_id is not None and item.medicine_id != reserved.medicine_id:
                    raise SaleValidationError(
                        f"Inventory item {item.inventory_id} does not hold medicine {item.medicine_id}"
                    )

            lines = [
                PricedLine(
                    inventory_id=item.inventory_id,
                    quantity=item.quantity,
                    unit_price=reservations[item.inventory_id].unit_price,
                )
                for item in items
            ]
            receipt = price_receipt(lines, discount_percent, paid_amount, round_off)

            sale = self.repository.add_sale(
                pharmacy_id,
                user_id,
                receipt,
                lines,
                reservations,
                request_id=request_id,
            )
            self.repository.commit()

        except SaleError as exc:
            self.repository.rollback()
            exc.outcome = SaleOutcome.ABORTED if reservations else SaleOutcome.REJECTED
            logger.info(f"Sale {exc.outcome.value} for pharmacy {pharmacy_id}: {exc.message}")
            raise

        except Exception:
            self.repository.rollback()
            raise

        logger.info(
            f"Sale {sale.id} {SaleOutcome.COMMITTED.value} for pharmacy {pharmacy_id}: "
            f"{len(lines)} lines, total {receipt.total}, net {receipt.net_payable}"
        )
        return sale
