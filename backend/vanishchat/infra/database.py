# vanishchat/infra/database.py

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from vanishchat.core.config import DATABASE_URL
from vanishchat.models.base import Base

logger = logging.getLogger(__name__)

# =========================
# ENGINE CONFIGURATION
# =========================


def build_engine(url: str = DATABASE_URL):
    """
    Create the SQLAlchemy engine for ``url``.

    Server databases get a pre-pinged, recycled connection pool. SQLite is
    opened with ``check_same_thread=False`` because store calls are made from
    the FastAPI threadpool.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return create_engine(
        url,
        pool_pre_ping=True,  # Check connections before using them
        pool_size=5,         # Maintain 5 connections in the pool
        max_overflow=10,     # Allow 10 extra connections if needed
        pool_recycle=3600,   # Recycle connections every hour
        echo=False,
    )


engine = build_engine()

# =========================
# SESSION CONFIGURATION
# =========================

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)

# =========================
# DATABASE FUNCTIONS
# =========================


@contextmanager
def db_session(factory=None):
    """
    Context manager for standalone DB operations.
    Usage:
        with db_session() as db:
            db.add(message)
    Commits on success, rolls back and re-raises on any error.
    """
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind=None):
    """Create all tables registered on ``Base``."""
    # Imported for its side effect of registering the table on Base
    from vanishchat.models.message import Message  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("✅ Database tables created")


def drop_db(bind=None):
    from vanishchat.models.message import Message  # noqa: F401

    Base.metadata.drop_all(bind=bind or engine)
    logger.warning("⚠️  Dropped all tables")


def check_connection(bind=None) -> bool:
    """Run ``SELECT 1`` against the database."""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error("❌ Database connection failed: %s", e)
        return False
