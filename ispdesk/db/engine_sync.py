# ispdesk/db/engine_sync.py
"""
Synchronous SQLModel engine shared by the API, the services and the billing job.
SQLite (default) runs in WAL mode to improve concurrency with the scheduler thread.
"""
from typing import Generator

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from ..config import get_settings

DATABASE_URL = get_settings().resolved_database_url

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

sync_engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)


if _is_sqlite:
    # Activar WAL mode para evitar "database is locked"
    @event.listens_for(sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()


def get_sync_session() -> Generator[Session, None, None]:
    """
    Dependency for SYNC SQLModel session injection.
    Usage: session: Session = Depends(get_sync_session)
    """
    with Session(sync_engine) as session:
        yield session


def create_sync_db_and_tables():
    """
    Create all tables defined in SQLModel models.
    Call this at application startup after importing all models.
    """
    from .. import models  # noqa: F401  (registers the tables)

    SQLModel.metadata.create_all(sync_engine)
