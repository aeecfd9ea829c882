from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from pharmapos.database import Base
from pharmapos.models import registry  # noqa: F401

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def alembic_config(database_url):
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def test_upgrade_creates_every_model_table(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'migrated.db'}"

    command.upgrade(alembic_config(database_url), "head")

    engine = create_engine(database_url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)

        for name, table in Base.metadata.tables.items():
            migrated = {column["name"] for column in inspector.get_columns(name)}
            assert migrated == set(table.columns.keys()), name

        unique = inspector.get_unique_constraints("sales")
        assert any(set(c["column_names"]) == {"pharmacy_id", "request_id"} for c in unique)
    finally:
        engine.dispose()


def test_downgrade_removes_tables(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = alembic_config(database_url)

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = create_engine(database_url)
    try:
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
