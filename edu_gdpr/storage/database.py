"""
Database handle for the GDPR lifecycle subsystem
Engine, session factory and transaction scopes passed explicitly to every component
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import get_gdpr_config
from ..exceptions import StorageUnavailableError

logger = structlog.get_logger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url


class Database:
    """Storage handle wrapping a SQLAlchemy engine and session factory"""

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        config = get_gdpr_config()
        self.database_url = database_url or config.database_url
        echo = config.database_echo if echo is None else echo

        engine_kwargs = {"echo": echo}
        is_sqlite = self.database_url.startswith("sqlite")
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(self.database_url):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.database_url, **engine_kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info("Database handle created", dialect=self.engine.dialect.name)

    def create_all(self) -> None:
        """Create every table of the lifecycle schema"""
        # Registers the mapped classes on Base.metadata
        from . import tables  # noqa: F401
        from ..consent import storage as consent_storage  # noqa: F401
        from ..audit import storage as audit_storage  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Session scope committing on success and rolling back on any error"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            logger.error("Storage operation failed", error=str(e.orig))
            raise StorageUnavailableError(str(e.orig)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Check the database answers a trivial query"""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except OperationalError as e:
            logger.warning("Database ping failed", error=str(e.orig))
            return False

    def dispose(self) -> None:
        self.engine.dispose()
