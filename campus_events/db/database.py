"""
Database connection and session management for Campus Events Service.
Every state-changing operation runs inside one explicit transaction.
"""

from contextlib import contextmanager
from typing import Generator
import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from campus_events.core.config import config
from campus_events.core.exceptions import InternalError
from campus_events.models.event import Base
from campus_events.models import registration  # noqa: F401  (registers OTP and registration tables)

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Database manager for transactional operations.
    Handles connection pooling and transaction management.
    """

    def __init__(self):
        self.engine = None
        self.session_factory = None
        self._initialized = False

    async def initialize(self):
        """Initialize the database engine from configuration."""
        if self._initialized:
            return

        try:
            db_url = await config.get_database_url()
            db_config = await config.get_database_config()

            engine = create_engine(
                db_url,
                poolclass=QueuePool,
                pool_size=db_config["pool_size"],
                max_overflow=db_config["max_overflow"],
                pool_timeout=db_config["pool_timeout"],
                pool_recycle=db_config["pool_recycle"],
                pool_pre_ping=True,
                echo=False,
            )
            self.bind(engine)
            logger.info("Database manager initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database manager: {e}")
            raise

    def bind(self, engine: Engine):
        """Attach an already-built engine and create the session factory."""
        self.engine = engine
        self.session_factory = sessionmaker(
            bind=self.engine,
            class_=Session,
            autoflush=False,
            expire_on_commit=False
        )
        self._setup_event_listeners()
        self._initialized = True

    def _setup_event_listeners(self):
        """Set up database event listeners for consistency."""

        @event.listens_for(self.engine, "connect")
        def set_connection_defaults(dbapi_connection, connection_record):
            """Set read committed isolation and lock timeouts on PostgreSQL connections."""
            if self.engine.dialect.name == "postgresql":
                with dbapi_connection.cursor() as cursor:
                    cursor.execute("SET default_transaction_isolation TO 'read committed'")
                    cursor.execute("SET lock_timeout TO '30s'")
                    cursor.execute("SET statement_timeout TO '60s'")
            elif self.engine.dialect.name == "sqlite":
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session with automatic transaction management.
        Commits on success, rolls back on exceptions.
        """
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    @contextmanager
    def get_transaction_session(self) -> Generator[Session, None, None]:
        """
        Get a database session with explicit transaction control.
        The caller commits; anything left uncommitted is rolled back.
        """
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")

        session = self.session_factory()
        try:
            session.begin()
            yield session
        except Exception as e:
            session.rollback()
            logger.warning(f"Transaction rolled back: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create all database tables."""
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created successfully")

    def health_check(self) -> bool:
        """Check database connectivity."""
        if not self._initialized:
            return False

        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def close(self):
        """Close all database connections."""
        if self.engine:
            self.engine.dispose()
        self._initialized = False
        logger.info("Database connections closed")


@contextmanager
def storage_errors(operation: str) -> Generator[None, None, None]:
    """Wrap unexpected storage failures as InternalError, keeping details in the log only."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Storage error during {operation}: {e}")
        raise InternalError() from e


# Global database manager instance
db_manager = DatabaseManager()
