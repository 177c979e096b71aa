"""Database engine, session factory and migration runner."""

import logging
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # Sync endpoints run in a threadpool, so a connection may cross threads
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on FK enforcement for SQLite so ON DELETE CASCADE fires."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for the duration of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_migrations(database_url: str = None) -> None:
    """
    Upgrade the database schema to the latest Alembic revision.

    Args:
        database_url: Override for settings.DATABASE_URL
    """
    from alembic import command
    from alembic.config import Config

    url = database_url or settings.DATABASE_URL
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    # ConfigParser interpolation treats % specially
    alembic_cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    # Keep the application's logging configuration
    alembic_cfg.attributes["configure_logger"] = False

    logger.info("Running database migrations")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database schema is up to date")
