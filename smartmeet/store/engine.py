"""
Database engine configuration.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from smartmeet.store.models import Base


def create_store_engine(database_url: str, echo: bool = False, busy_timeout_ms: int = 5000) -> Engine:
    """Create a SQLite engine with WAL journaling and foreign key enforcement."""
    engine = create_engine(database_url, echo=echo)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute(f"PRAGMA busy_timeout={max(0, int(busy_timeout_ms))}")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the store's engine."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create all tables. Existing tables and their rows are left alone."""
    Base.metadata.create_all(bind=engine)
