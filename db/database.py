"""
Lexibox – Database initialisation & session management
=======================================================
Builds the engine from ``LEXIBOX_DATABASE_URL`` (or a SQLite file in a
``data/`` folder next to the project) and provides a session factory.
"""

import os
import sys
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from db.models import Base

DATABASE_URL_ENV = "LEXIBOX_DATABASE_URL"


# ---------------------------------------------------------------------------
# Resolve a user-data directory that survives packaging with PyInstaller.
# ---------------------------------------------------------------------------

def _app_data_dir() -> Path:
    """Return a stable directory for the SQLite file."""
    if getattr(sys, "frozen", False):
        base = Path(sys.executable).parent
    else:
        base = Path(__file__).resolve().parent.parent
    data_dir = base / "data"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def database_url() -> str:
    """Return the configured database URL."""
    url = os.environ.get(DATABASE_URL_ENV)
    if url:
        return url
    return f"sqlite:///{_app_data_dir() / 'lexibox.db'}"


def make_engine(url: str | None = None):
    """Create an engine; SQLite connections get foreign keys switched on."""
    url = url or database_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, echo=False, connect_args=connect_args)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


_engine = None
_SessionLocal = None


def _session_factory() -> sessionmaker:
    global _engine, _SessionLocal
    if _SessionLocal is None:
        _engine = make_engine()
        _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)
    return _SessionLocal


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def init_db(engine=None) -> None:
    """Create all tables if they do not exist yet."""
    if engine is None:
        _session_factory()
        engine = _engine
    Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    """Return a new SQLAlchemy session."""
    return _session_factory()()
