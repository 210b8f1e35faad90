"""Database engine and session management (one SQLite file per process)."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from contrack.exceptions import StorageError
from contrack.storage.models import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def open_database(db_path: Optional[Path] = None) -> Engine:
    """Open (creating if absent) the database, ensure schema and seed rows.

    Safe to call on every invocation; subsequent calls reuse the engine.
    """
    global _engine, _session_factory
    if _engine is not None:
        return _engine

    if db_path is None:
        from contrack.paths import get_database_path

        db_path = get_database_path()

    engine = create_engine(f"sqlite:///{db_path}")
    event.listen(engine, "connect", _enable_foreign_keys)
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        engine.dispose()
        raise StorageError(f"Failed to open database at {db_path}: {e}") from e

    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    logger.debug("Database ready at %s", db_path)

    from contrack.storage.seed import ensure_seeded

    with get_session() as session:
        ensure_seeded(session)
    return engine


def close_database() -> None:
    """Dispose of the engine so the next open_database() starts fresh."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session; commit on success, roll back on error."""
    if _session_factory is None:
        open_database()
    session = _session_factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        url = _engine.url.database if _engine is not None else "?"
        raise StorageError(f"Database operation failed ({url}): {e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
