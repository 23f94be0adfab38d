# salonbook/db.py

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from salonbook.config import get_settings


def make_engine(url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # required for SQLite + FastAPI; writers wait on each other instead of failing fast
        connect_args = {"check_same_thread": False, "timeout": 30}

    new_engine = create_engine(url, echo=echo, connect_args=connect_args)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = make_engine(get_settings().DATABASE_URL)


def create_db_and_tables(target: Engine = engine) -> None:
    import salonbook.models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(target)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
