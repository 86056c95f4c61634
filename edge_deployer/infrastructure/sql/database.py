#edge_deployer\infrastructure\sql\database.py

"""SQLAlchemy database setup and session management."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker


# ============================================
# Base for ORM models
# ============================================
Base = declarative_base()


# ============================================
# Engine configuration
# ============================================
def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create SQLAlchemy engine for the metadata database."""

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            # Requests are served from a thread pool
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """Survive power loss on the appliance."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=FULL")
            cursor.close()

        return engine

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before using
    )


# ============================================
# Session factory function
# ============================================
def get_session_factory(engine_instance: Engine) -> sessionmaker:
    """
    Get a session factory bound to the given engine.

    This allows tests to inject their own test engine.
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine_instance,
        expire_on_commit=False
    )


# ============================================
# Database initialization
# ============================================
def init_db(engine_instance: Engine) -> None:
    """Create all tables."""
    # Import registers the tables on Base.metadata
    from edge_deployer.infrastructure.sql import models  # noqa: F401

    Base.metadata.create_all(bind=engine_instance)


def drop_db(engine_instance: Engine) -> None:
    """Drop all tables (for testing only)."""
    Base.metadata.drop_all(bind=engine_instance)
