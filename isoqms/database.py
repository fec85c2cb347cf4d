"""
Database Configuration and Session Management

SQLAlchemy engine, session factory and declarative base.

Tenant scoping is not applied here: get_db() yields a raw session and
the request context wraps it in a TenantScopedSession
(see isoqms.core.tenancy).
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool
from isoqms.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()

IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")


def _engine_options() -> dict:
    if IS_SQLITE:
        # One shared connection so in-memory databases survive across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "poolclass": QueuePool,
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(),
)

# expire_on_commit=False: handlers serialize ORM objects after commit
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

# Base class for all models
Base = declarative_base()


@event.listens_for(engine, "connect")
def configure_connection(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    cursor = dbapi_connection.cursor()
    if IS_SQLITE:
        cursor.execute("PRAGMA foreign_keys=ON")
    elif settings.DATABASE_URL.startswith("postgresql"):
        cursor.execute("SET TIME ZONE 'UTC'")
    cursor.close()
    logger.debug("New database connection established")


def get_db() -> Session:
    """
    Dependency function that provides a database session.

    The session is closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create all tables and seed the default plans.

    Development and tests only; production schemas are managed by migrations.
    """
    # Register every model on Base.metadata
    import isoqms.models  # noqa: F401
    from isoqms.core.plan_limits import seed_default_plans

    logger.warning("init_db() called - creating tables from ORM metadata")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_default_plans(db)
    finally:
        db.close()
