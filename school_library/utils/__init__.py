import logging
from functools import wraps
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session

from school_library.config import Config, Settings
from school_library.errors import ConnectionConfigError, LibraryError, StorageError
from school_library.models import Base
from school_library.sql import DDL_BY_DIALECT

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the engine, and with it the connection pool, for one database.

    The engine is created lazily from the stored URL and credentials, so a
    closed database reconnects on next use. Repositories never touch the
    engine: they receive a session from `session()`.
    """

    def __init__(self, url: Optional[str] = None, user=None, password=None, echo=False):
        self.url = url
        self.user = user
        self.password = password
        self.echo = echo
        self._engine: Optional[Engine] = None

    @classmethod
    def from_config(cls, config: Config, settings: Optional[Settings] = None) -> "Database":
        settings = settings or Settings()
        return cls(
            settings.db_url or config.SQLALCHEMY_DATABASE_URI,
            settings.db_user,
            settings.db_password,
            echo=config.SQLALCHEMY_ECHO,
        )

    def connect(self, url: str, user: Optional[str] = None, password: Optional[str] = None):
        """Stores new connection data, the next use opens a fresh engine with it."""
        self.close()
        self.url = url
        self.user = user
        self.password = password
        logger.info("Connection data set for %s", url)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def _create_engine(self) -> Engine:
        if not self.url:
            raise ConnectionConfigError("No database URL configured")
        try:
            url = make_url(self.url)
            if self.user:
                url = url.set(username=self.user)
            if self.password:
                url = url.set(password=self.password)
            engine = create_engine(url, echo=self.echo)
        except (ArgumentError, ImportError, ValueError) as e:
            raise ConnectionConfigError(f"Invalid database URL {self.url}: {e}") from e

        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def get_connection(self) -> Connection:
        try:
            return self.engine.connect()
        except SQLAlchemyError as e:
            logger.error("Could not connect to %s: %s", self.url, e)
            raise ConnectionConfigError(f"Could not connect to the database: {e}") from e

    def test_connection(self) -> bool:
        try:
            with self.get_connection() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise ConnectionConfigError(f"Could not connect to the database: {e}") from e
        logger.info("Test connection to %s succeeded", self.url)
        return True

    def session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        ddl = DDL_BY_DIALECT.get(self.dialect_name)
        if ddl is None:
            Base.metadata.create_all(self.engine)
            return

        with self.engine.begin() as connection:
            for stmt in ddl.split(";"):
                if stmt.strip():
                    connection.execute(text(stmt))
        logger.info("Schema created for %s", self.dialect_name)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(self.engine)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Connection to %s closed", self.url)
        self._engine = None


def atomic_transaction(func):
    """
    Decorator to wrap a method in an atomic transaction.
    Uses the `session` attribute of the instance the method is bound to.
    Database errors are rolled back and re-raised as `StorageError`.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            result = func(self, *args, **kwargs)  # Execute the method
            self.session.commit()  # Commit the transaction if no errors
            return result
        except LibraryError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()  # Rollback on SQLAlchemy errors
            logger.error("Transaction %s rolled back: %s", func.__name__, e)
            raise StorageError(f"Database error in {func.__name__}: {e}") from e
        except Exception:
            self.session.rollback()  # Rollback on any other errors
            raise

    return wrapper
