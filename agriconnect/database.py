# agriconnect/database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.event import listen
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .config import settings


class Base(DeclarativeBase):
    pass


def _fk_pragma_on_connect(dbapi_con, con_record):
    """Ensures that the foreign key pragma is enabled for SQLite connections."""
    dbapi_con.execute('PRAGMA foreign_keys=ON')


def make_engine(database_url: str, **kwargs) -> Engine:
    """
    Creates an engine for the given URL.
    SQLite needs 'check_same_thread' off because FastAPI serves requests
    from a thread pool, and foreign keys switched on for cascades to work.
    """
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    engine = create_engine(database_url, **kwargs)
    if is_sqlite:
        listen(engine, 'connect', _fk_pragma_on_connect)
    return engine


def make_session_factory(database_url: str) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=make_engine(database_url))


# The engine is the main entry point to the database.
engine = make_engine(settings.get_database_url())

# Create a SessionLocal class for database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
