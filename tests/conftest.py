import os
import tempfile
from decimal import Decimal

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pharmapos")
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.gettempdir(), 'pharmapos-test.db')}",
)
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pharmapos.core.hashing import hash_password
from pharmapos.core.jwt import create_access_token
from pharmapos.core.rate_limiter import limiter
from pharmapos.database import Base, build_engine, get_db
from pharmapos.main import app
from pharmapos.models.registry import Inventory, Medicine, Pharmacy, User


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so concurrent sessions share one database."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'pharmapos.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    limiter.reset()
    yield


# =============================================================================
# SEED DATA
# =============================================================================

@pytest.fixture
def pharmacy(db):
    pharmacy = Pharmacy(name="City Pharmacy", address="12 Lake Road")
    db.add(pharmacy)
    db.commit()
    return pharmacy


@pytest.fixture
def other_pharmacy(db):
    pharmacy = Pharmacy(name="Rival Pharmacy")
    db.add(pharmacy)
    db.commit()
    return pharmacy


def _make_user(db, pharmacy, email, role):
    user = User(
        username=email.split("@")[0],
        email=email,
        password_hash=hash_password("s3cure-pass!"),
        role=role,
        pharmacy_id=pharmacy.id,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def owner(db, pharmacy):
    return _make_user(db, pharmacy, "owner@citypharmacy.com", "owner")


@pytest.fixture
def employee(db, pharmacy):
    return _make_user(db, pharmacy, "clerk@citypharmacy.com", "employee")


@pytest.fixture
def other_owner(db, other_pharmacy):
    return _make_user(db, other_pharmacy, "owner@rivalpharmacy.com", "owner")


@pytest.fixture
def medicine(db):
    medicine = Medicine(
        brand_id=1001,
        brand_name="Napa",
        generic_name="Paracetamol",
        manufacturer="Beximco",
        type="Tablet",
    )
    db.add(medicine)
    db.commit()
    return medicine


@pytest.fixture
def make_stock(db, pharmacy):
    """Create an inventory row; defaults to 10 units at 100.00 in `pharmacy`."""

    def _make(quantity=10, price="100.00", owner_pharmacy=None, medicine=None, brand_name="Custom Syrup", **fields):
        inventory = Inventory(
            pharmacy_id=(owner_pharmacy or pharmacy).id,
            medicine_id=medicine.id if medicine is not None else None,
            brand_name=medicine.brand_name if medicine is not None else brand_name,
            quantity=quantity,
            unit_cost_price=Decimal(price) / 2,
            unit_sale_price=Decimal(price),
            **fields,
        )
        db.add(inventory)
        db.commit()
        return inventory

    return _make


@pytest.fixture
def stock_of(session_factory):
    """Read a row's quantity through a fresh session."""

    def _read(inventory_id):
        session = session_factory()
        try:
            return session.get(Inventory, inventory_id).quantity
        finally:
            session.close()

    return _read


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _headers
