# pharmapos/database.py

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from pharmapos.core.config import settings


Base = declarative_base()


def _enable_sqlite_fk(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # One connection per session; the busy timeout bounds how long a
        # writer waits for another sale's transaction to finish.
        sqlite_engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.SALE_LOCK_TIMEOUT_MS / 1000,
            },
            poolclass=NullPool,
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_fk)
        return sqlite_engine

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
