"""Database engine, session factory and trip store selection."""

import logging

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.tripflow.config import Settings
from backend.tripflow.db.inmemory import InMemoryTripStore
from backend.tripflow.db.models import Base
from backend.tripflow.db.repositories import TripStore
from backend.tripflow.db.sql_repositories import SqlTripStore

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> Engine:
    """Create SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    if not settings.database_url:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )

    database_url = settings.database_url
    # Stores are synchronous; normalize async driver URLs
    if database_url.startswith("sqlite+aiosqlite://"):
        database_url = database_url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    elif database_url.startswith("postgresql+asyncpg://"):
        database_url = database_url.replace("postgresql+asyncpg://", "postgresql://", 1)

    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # One shared connection, otherwise every session sees an empty database
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(database_url, pool_pre_ping=True, echo=False)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create sessionmaker for creating database sessions.

    Args:
        engine: SQLAlchemy engine

    Returns:
        Sessionmaker bound to the engine
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_trip_store(settings: Settings) -> TripStore:
    """Build the trip store configured by settings.

    Falls back to the in-memory store when no database URL is configured.
    """
    if not settings.database_url:
        logger.warning("No DATABASE_URL configured, using in-memory trip store")
        return InMemoryTripStore()

    logger.info("Using SQL trip store")
    engine = create_engine_from_settings(settings)
    if engine.dialect.name == "sqlite":
        # Local/dev databases are not migrated with alembic
        Base.metadata.create_all(engine)
    return SqlTripStore(create_session_factory(engine))
