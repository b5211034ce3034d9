import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from quizly.core.config import settings
from quizly.core.exceptions import ConflictError, DatabaseError

# -----------------------
# Logging setup
# -----------------------
logger = logging.getLogger(__name__)


# -----------------------
# SQLAlchemy engine
# -----------------------
def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets thread sharing and foreign keys."""
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # keep a single connection so the in-memory database survives
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
        kwargs["pool_recycle"] = 1800

    new_engine = create_engine(database_url, **kwargs)

    if new_engine.dialect.name == "sqlite":

        @event.listens_for(new_engine, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


# Hide credentials in logs
safe_db_url = settings.database_url.split("@")[-1]
logger.info(f"Connecting to database: {safe_db_url}")

engine = build_engine(settings.database_url, echo=settings.database_echo)

# -----------------------
# Session and Base
# -----------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# -----------------------
# Dependency for FastAPI
# -----------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error occurred: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def transaction(
    db: Session, conflict_message: Optional[str] = None
) -> Iterator[Session]:
    """
    Run a unit of work and commit it, or roll everything back.

    IntegrityError becomes ConflictError, any other SQLAlchemyError becomes
    DatabaseError. Application errors raised inside the block roll back and
    propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Transaction conflict: {e.orig}")
        raise ConflictError(conflict_message or "Duplicate entry: already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction failed: {e}", exc_info=True)
        raise DatabaseError("Database transaction failed", e) from e
    except Exception:
        db.rollback()
        raise
