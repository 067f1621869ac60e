from contextlib import contextmanager
import os
from pathlib import Path
from typing import Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .utils import resolve_sqlite_url

load_dotenv()
# Repository root, used to anchor relative SQLite paths
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DB_URL = "sqlite:///./dev.db"


def configured_database_url() -> str:
    """Return ``DB_URL`` (or the development SQLite file) as an absolute URL."""
    return resolve_sqlite_url(os.getenv("DB_URL", DEFAULT_DB_URL), ROOT_DIR)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine for ``database_url`` or the configured database.

    ``echo`` defaults to the ``DB_ECHO`` environment variable. SQLite
    connections get foreign key enforcement so scoring rows cascade with
    their registration the way they do on the hosted database.
    """
    url = database_url or configured_database_url()
    if echo is None:
        echo = os.getenv("DB_ECHO", "").lower() in ("1", "true", "yes")
    engine = create_engine(url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    # Results objects outlive the transaction that loaded them
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error."""
    session = get_sessionmaker(engine)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
