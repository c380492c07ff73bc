"""
Catalog Database Access

Builds SQLAlchemy engines and sessions against the cluster's coordinator
database. The tool only reads from the catalog.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, DBAPIError, NoSuchModuleError
from sqlalchemy.orm import Session, sessionmaker

from mirrormap.errors import ExternalDependencyError, PreconditionError

logger = logging.getLogger(__name__)


def build_database_url(database: str) -> str:
    """
    Build a psycopg URL for ``database``.

    Host, port and user come from the usual libpq ``PG*`` environment
    variables, the same way psql resolves them.
    """
    name = str(database or "").strip()
    if not name:
        raise ValueError("database name is required")
    return f"postgresql+psycopg:///{name}"


def create_catalog_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    try:
        return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
    except (ArgumentError, NoSuchModuleError) as exc:
        raise PreconditionError(f"Invalid database URL: {exc}") from exc


def check_database(engine: Engine) -> None:
    """Fail fast when the target database is missing or unreachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except DBAPIError as exc:
        raise ExternalDependencyError(
            f"Database '{engine.url.database}' does not exist or is unreachable: {exc.orig or exc}"
        ) from exc
    logger.debug(f"Connected to catalog database '{engine.url.database}'")


def open_session(engine: Engine) -> Session:
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return SessionLocal()
