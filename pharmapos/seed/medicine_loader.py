"""Seed the shared medicine catalogue from a CSV export.

Expected header (case and underscores ignored):
    brand id, brand name, type, ..., generic, ..., manufacturer, ...

Rows are inserted once per ``brand id``; rerunning the load skips rows
that are already present.
"""
import csv
import logging

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmapos.models.medicines import Medicine

logger = logging.getLogger("pharmapos.seed")

BATCH_SIZE = 500


def _normalise(row: dict) -> dict:
    return {
        (key or "").strip().lower().replace("_", " "): (value or "").strip()
        for key, value in row.items()
    }


def _parse_row(row: dict) -> dict | None:
    row = _normalise(row)
    brand_name = row.get("brand name", "")

    try:
        brand_id = int(row.get("brand id", ""))
    except ValueError:
        return None

    if not brand_name:
        return None

    return {
        "brand_id": brand_id,
        "brand_name": brand_name,
        "type": row.get("type") or None,
        "generic_name": row.get("generic") or row.get("generic name") or None,
        "manufacturer": row.get("manufacturer") or None,
    }


def _insert_ignoring_duplicates(db: Session, rows: list[dict]) -> None:
    if db.get_bind().dialect.name == "postgresql":
        stmt = postgresql_insert(Medicine)
    else:
        stmt = sqlite_insert(Medicine)

    db.execute(stmt.on_conflict_do_nothing(index_elements=["brand_id"]), rows)


def load_medicines(db: Session, csv_path: str) -> int:
    """Load the catalogue and return how many new medicines were stored."""
    before = db.execute(select(func.count()).select_from(Medicine)).scalar()
    skipped = 0
    batch = []

    try:
        with open(csv_path, newline="", encoding="utf-8") as handle:
            for row in csv.DictReader(handle):
                medicine = _parse_row(row)
                if medicine is None:
                    skipped += 1
                    continue

                batch.append(medicine)
                if len(batch) >= BATCH_SIZE:
                    _insert_ignoring_duplicates(db, batch)
                    batch = []

        if batch:
            _insert_ignoring_duplicates(db, batch)

        db.commit()

    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Unable to seed medicine catalogue from {csv_path}")
        raise

    added = db.execute(select(func.count()).select_from(Medicine)).scalar() - before
    logger.info(f"Seeded medicine catalogue with {added} rows ({skipped} skipped)")
    return added
