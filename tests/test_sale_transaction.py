from decimal import Decimal

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from pharmapos.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    SaleOutcome,
    SaleValidationError,
)
from pharmapos.models.registry import Inventory, Sale, SaleItem
from pharmapos.services.inventory_ledger import InventoryLedger
from pharmapos.services.sale_repository import SaleRepository
from pharmapos.services.sale_transaction import (
    SaleLineRequest,
    SaleTransactionCoordinator,
    aggregate_demand,
)


def count_rows(session_factory, model):
    session = session_factory()
    try:
        return session.execute(select(func.count()).select_from(model)).scalar()
    finally:
        session.close()


class FlakyCommitRepository(SaleRepository):
    """Fails the first `failures` commits with the given error."""

    def __init__(self, db, failures, error):
        super().__init__(db)
        self.failures = failures
        self.error = error
        self.commit_calls = 0

    def commit(self):
        self.commit_calls += 1
        if self.commit_calls <= self.failures:
            raise self.error
        super().commit()


class RecordingLedger(InventoryLedger):
    def __init__(self, db):
        super().__init__(db)
        self.calls = []

    def reserve(self, pharmacy_id, inventory_id, quantity):
        self.calls.append((inventory_id, quantity))
        return super().reserve(pharmacy_id, inventory_id, quantity)


def locked_error():
    return OperationalError("COMMIT", {}, Exception("database is locked"))


# =============================================================================
# COMMITTED SALES
# =============================================================================

def test_scenario_a_discounted_sale_with_change(db, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10, price="100.00")
    inventory_id = inventory.id

    sale = SaleTransactionCoordinator(db).process_sale(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[SaleLineRequest(inventory_id=inventory_id, quantity=3)],
        discount_percent=Decimal("10"),
        paid_amount=Decimal("300"),
    )

    assert sale.total_amount == Decimal("300.00")
    assert sale.discount == Decimal("30.00")
    assert sale.net_payable == Decimal("270.00")
    assert sale.due_amount == Decimal("0.00")
    assert sale.change_returned == Decimal("30.00")
    assert sale.user_id == employee.id
    assert stock_of(inventory_id) == 7


def test_committed_sale_invariants(db, make_stock, medicine, pharmacy, employee, stock_of):
    first = make_stock(quantity=20, price="12.75", medicine=medicine)
    second = make_stock(quantity=8, price="3.10")
    first_id, second_id = first.id, second.id

    sale = SaleTransactionCoordinator(db).process_sale(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[
            SaleLineRequest(inventory_id=second_id, quantity=2),
            SaleLineRequest(inventory_id=first_id, quantity=5, medicine_id=medicine.id),
            SaleLineRequest(inventory_id=second_id, quantity=1),
        ],
        discount_percent=Decimal("7.5"),
        paid_amount=Decimal("50"),
        round_off=Decimal("-0.25"),
    )

    items = sale.items
    assert len(items) == 3
    assert sum(item.subtotal for item in items) == sale.total_amount
    assert sale.total_amount == Decimal("73.05")
    assert sale.net_payable == sale.total_amount - sale.discount + sale.round_off
    assert sale.due_amount * sale.change_returned == 0

    assert [item.inventory_id for item in items] == [second_id, first_id, second_id]
    assert items[1].medicine_id == medicine.id
    assert items[0].medicine_id is None

    assert stock_of(first_id) == 15
    assert stock_of(second_id) == 5


def test_lines_on_same_row_are_aggregated(db, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10)
    inventory_id = inventory.id
    ledger = RecordingLedger(db)

    sale = SaleTransactionCoordinator(db, ledger=ledger).process_sale(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[
            SaleLineRequest(inventory_id=inventory_id, quantity=3),
            SaleLineRequest(inventory_id=inventory_id, quantity=4),
        ],
        paid_amount=Decimal("700"),
    )

    assert ledger.calls == [(inventory_id, 7)]
    assert len(sale.items) == 2
    assert stock_of(inventory_id) == 3


def test_reservations_follow_ascending_inventory_id(db, make_stock, pharmacy, employee):
    rows = [make_stock(quantity=5) for _ in range(3)]
    ids = [row.id for row in rows]
    ledger = RecordingLedger(db)

    SaleTransactionCoordinator(db, ledger=ledger).process_sale(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[SaleLineRequest(inventory_id=i, quantity=1) for i in reversed(ids)],
    )

    assert [call[0] for call in ledger.calls] == sorted(ids)


def test_unit_price_is_a_snapshot(db, session_factory, make_stock, pharmacy, employee):
    inventory = make_stock(quantity=10, price="100.00")
    inventory_id = inventory.id

    sale = SaleTransactionCoordinator(db).process_sale(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[SaleLineRequest(inventory_id=inventory_id, quantity=1)],
    )
    sale_id = sale.id

    session = session_factory()
    try:
        session.get(Inventory, inventory_id).unit_sale_price = Decimal("250.00")
        session.commit()

        item = session.query(SaleItem).filter(SaleItem.sale_id == sale_id).one()
        assert item.unit_price == Decimal("100.00")
        assert item.subtotal == Decimal("100.00")
    finally:
        session.close()


def test_aggregate_demand_orders_by_inventory_id():
    demand = aggregate_demand(
        [
            SaleLineRequest(inventory_id=9, quantity=1),
            SaleLineRequest(inventory_id=2, quantity=2),
            SaleLineRequest(inventory_id=9, quantity=4),
        ]
    )

    assert list(demand.items()) == [(2, 2), (9, 5)]


# =============================================================================
# REJECTED / ABORTED SALES
# =============================================================================

def test_scenario_c_zero_quantity_touches_no_storage(db, engine, make_stock, pharmacy, employee):
    inventory = make_stock(quantity=10)
    inventory_id, pharmacy_id, user_id = inventory.id, pharmacy.id, employee.id

    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    try:
        with pytest.raises(SaleValidationError) as excinfo:
            SaleTransactionCoordinator(db).process_sale(
                pharmacy_id=pharmacy_id,
                user_id=user_id,
                items=[SaleLineRequest(inventory_id=inventory_id, quantity=0)],
                request_id="zero-qty",
            )
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert statements == []
    assert excinfo.value.outcome is SaleOutcome.REJECTED


@pytest.mark.parametrize(
    "kwargs",
    [
        {"items": []},
        {"paid_amount": Decimal("-1")},
        {"discount_percent": Decimal("150")},
        {"items": [SaleLineRequest(inventory_id=1, quantity=10**20)]},
        {"paid_amount": Decimal("1e15")},
        {"round_off": Decimal("-1e15")},
    ],
)
def test_invalid_requests_are_rejected(db, pharmacy, employee, kwargs):
    request = {
        "pharmacy_id": pharmacy.id,
        "user_id": employee.id,
        "items": [SaleLineRequest(inventory_id=1, quantity=1)],
    }
    request.update(kwargs)

    with pytest.raises(SaleValidationError):
        SaleTransactionCoordinator(db).process_sale(**request)


def test_oversized_quantity_is_rejected_before_storage(db, engine, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10)
    inventory_id, pharmacy_id, user_id = inventory.id, pharmacy.id, employee.id

    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    try:
        with pytest.raises(SaleValidationError) as excinfo:
            SaleTransactionCoordinator(db).process_sale(
                pharmacy_id=pharmacy_id,
                user_id=user_id,
                items=[SaleLineRequest(inventory_id=inventory_id, quantity=10**20)],
            )
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert statements == []
    assert excinfo.value.outcome is SaleOutcome.REJECTED
    assert stock_of(inventory_id) == 10


def test_total_beyond_money_column_aborts_sale(db, session_factory, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=2_000_000_000, price="100.00")
    inventory_id = inventory.id

    with pytest.raises(SaleValidationError) as excinfo:
        SaleTransactionCoordinator(db).process_sale(
            pharmacy_id=pharmacy.id,
            user_id=employee.id,
            items=[SaleLineRequest(inventory_id=inventory_id, quantity=1_000_000_000)],
        )

    assert excinfo.value.outcome is SaleOutcome.ABORTED
    assert stock_of(inventory_id) == 2_000_000_000
    assert count_rows(session_factory, Sale) == 0


def test_explicit_zero_settings_are_kept(db):
    coordinator = SaleTransactionCoordinator(db, lock_timeout_ms=0, max_attempts=0, retry_backoff_ms=0)

    assert coordinator.lock_timeout_ms == 0
    assert coordinator.max_attempts == 1
    assert coordinator.retry_backoff_ms == 0


def test_scenario_d_foreign_inventory(
    db, session_factory, make_stock, pharmacy, other_pharmacy, employee, stock_of
):
    foreign = make_stock(quantity=10, owner_pharmacy=other_pharmacy)
    foreign_id = foreign.id

    with pytest.raises(NotFoundError) as excinfo:
        SaleTransactionCoordinator(db).process_sale(
            pharmacy_id=pharmacy.id,
            user_id=employee.id,
            items=[SaleLineRequest(inventory_id=foreign_id, quantity=1)],
        )

    assert excinfo.value.inventory_id == foreign_id
    assert excinfo.value.outcome is SaleOutcome.REJECTED
    assert stock_of(foreign_id) == 10
    assert count_rows(session_factory, Sale) == 0


def test_aggregated_demand_exceeding_stock(db, session_factory, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=6)
    inventory_id = inventory.id

    with pytest.raises(InsufficientStockError) as excinfo:
        SaleTransactionCoordinator(db).process_sale(
            pharmacy_id=pharmacy.id,
            user_id=employee.id,
            items=[
                SaleLineRequest(inventory_id=inventory_id, quantity=3),
                SaleLineRequest(inventory_id=inventory_id, quantity=4),
            ],
        )

    assert excinfo.value.requested == 7
    assert excinfo.value.available == 6
    assert stock_of(inventory_id) == 6
    assert count_rows(session_factory, Sale) == 0


def test_later_failure_rolls_back_earlier_reservations(
    db, session_factory, make_stock, pharmacy, employee, stock_of
):
    plenty = make_stock(quantity=10)
    scarce = make_stock(quantity=1)
    plenty_id, scarce_id = plenty.id, scarce.id

    with pytest.raises(InsufficientStockError) as excinfo:
        SaleTransactionCoordinator(db).process_sale(
            pharmacy_id=pharmacy.id,
            user_id=employee.id,
            items=[
                SaleLineRequest(inventory_id=scarce_id, quantity=2),
                SaleLineRequest(inventory_id=plenty_id, quantity=4),
            ],
        )

    assert excinfo.value.inventory_id == scarce_id
    assert excinfo.value.outcome is SaleOutcome.ABORTED
    assert stock_of(plenty_id) == 10
    assert stock_of(scarce_id) == 1
    assert count_rows(session_factory, Sale) == 0
    assert count_rows(session_factory, SaleItem) == 0


def test_medicine_mismatch_aborts_sale(db, make_stock, medicine, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10, medicine=medicine)
    inventory_id = inventory.id

    with pytest.raises(SaleValidationError) as excinfo:
        SaleTransactionCoordinator(db).process_sale(
            pharmacy_id=pharmacy.id,
            user_id=employee.id,
            items=[SaleLineRequest(inventory_id=inventory_id, quantity=2, medicine_id=medicine.id + 1)],
        )

    assert excinfo.value.outcome is SaleOutcome.ABORTED
    assert stock_of(inventory_id) == 10


# =============================================================================
# PERSISTENCE FAILURES, RETRY, IDEMPOTENCY
# =============================================================================

def test_commit_failure_discards_everything_then_retry_commits_once(
    db, session_factory, make_stock, pharmacy, employee, stock_of
):
    inventory = make_stock(quantity=10)
    inventory_id, pharmacy_id, user_id = inventory.id, pharmacy.id, employee.id
    request = dict(
        pharmacy_id=pharmacy_id,
        user_id=user_id,
        items=[SaleLineRequest(inventory_id=inventory_id, quantity=2)],
        paid_amount=Decimal("200"),
    )

    flaky = FlakyCommitRepository(db, failures=1, error=locked_error())
    with pytest.raises(PersistenceError) as excinfo:
        SaleTransactionCoordinator(db, repository=flaky, max_attempts=1).process_sale(**request)

    assert excinfo.value.retryable is True
    assert stock_of(inventory_id) == 10
    assert count_rows(session_factory, Sale) == 0

    SaleTransactionCoordinator(db).process_sale(**request)

    assert stock_of(inventory_id) == 8
    assert count_rows(session_factory, Sale) == 1
    assert count_rows(session_factory, SaleItem) == 1


def test_transient_failure_is_retried(db, session_factory, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10)
    inventory_id = inventory.id

    flaky = FlakyCommitRepository(db, failures=2, error=locked_error())
    coordinator = SaleTransactionCoordinator(
        db,
        repository=flaky,
        max_attempts=3,
        retry_backoff_ms=0,
    )
    coordinator.process_sale(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[SaleLineRequest(inventory_id=inventory_id, quantity=4)],
    )

    assert flaky.commit_calls == 3
    assert stock_of(inventory_id) == 6
    assert count_rows(session_factory, Sale) == 1


def test_non_transient_failure_is_not_retried(db, session_factory, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10)
    inventory_id = inventory.id

    flaky = FlakyCommitRepository(db, failures=1, error=SQLAlchemyError("disk I/O error"))
    coordinator = SaleTransactionCoordinator(db, repository=flaky, max_attempts=3, retry_backoff_ms=0)

    with pytest.raises(PersistenceError):
        coordinator.process_sale(
            pharmacy_id=pharmacy.id,
            user_id=employee.id,
            items=[SaleLineRequest(inventory_id=inventory_id, quantity=4)],
        )

    assert flaky.commit_calls == 1
    assert stock_of(inventory_id) == 10
    assert count_rows(session_factory, Sale) == 0


def test_request_id_replays_committed_sale(db, session_factory, make_stock, pharmacy, employee, stock_of):
    inventory = make_stock(quantity=10)
    inventory_id = inventory.id
    request = dict(
        pharmacy_id=pharmacy.id,
        user_id=employee.id,
        items=[SaleLineRequest(inventory_id=inventory_id, quantity=2)],
        request_id="till-1-0001",
    )

    first = SaleTransactionCoordinator(db).process_sale(**request)
    second = SaleTransactionCoordinator(db).process_sale(**request)

    assert first.id == second.id
    assert stock_of(inventory_id) == 8
    assert count_rows(session_factory, Sale) == 1
