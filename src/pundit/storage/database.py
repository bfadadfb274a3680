"""SQLite database initialization and session management."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

# Import models so SQLModel registers them
from pundit.storage import models as _models  # noqa: F401

_engines: dict[str, Engine] = {}


def get_engine(db_path: Path) -> Engine:
    """Get or create a SQLAlchemy engine for the given database path."""
    key = str(db_path)
    if key not in _engines:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        # Autosave writes from a timer thread
        engine = create_engine(
            f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
        )
        SQLModel.metadata.create_all(engine)
        _engines[key] = engine
    return _engines[key]


def get_session(db_path: Path) -> Session:
    """Create a new database session."""
    engine = get_engine(db_path)
    return Session(engine)


def dispose_engines() -> None:
    """Close every cached engine (tests use a fresh database each time)."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
