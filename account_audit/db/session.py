from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from account_audit.core.config import POSTGRES_SCHEME, settings

# Schemas owned by the hosting platform
AUTH_SCHEMA = "auth"
PUBLIC_SCHEMA = "public"

# Create Base class for declarative class definitions
Base = declarative_base()


def normalize_database_url(database_url: str) -> URL:
    """
    Parse a connection string, pinning bare PostgreSQL URLs to psycopg2.

    Hosting dashboards hand out both postgres:// and postgresql:// URLs.
    Raises sqlalchemy.exc.ArgumentError for strings that are not URLs.
    """
    url = make_url(database_url)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=POSTGRES_SCHEME)
    return url


def postgres_connect_args(timeout_seconds: int) -> dict:
    return {"options": f"-c statement_timeout={timeout_seconds * 1000}"}


def create_db_engine(database_url: Optional[str] = None, timeout_seconds: Optional[int] = None) -> Engine:
    """
    Create an engine for the audited database.

    PostgreSQL connections get a statement timeout. SQLite URLs are accepted
    for local fixtures; the platform schemas are mapped to SQLite's default
    schema and in-memory databases share a single connection.
    """
    url = normalize_database_url(str(database_url or settings.SQLALCHEMY_DATABASE_URI))
    timeout_seconds = timeout_seconds or settings.QUERY_TIMEOUT_SECONDS

    if url.get_backend_name() == "sqlite":
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            execution_options={"schema_translate_map": {AUTH_SCHEMA: None, PUBLIC_SCHEMA: None}},
        )

    return create_engine(
        url,
        pool_pre_ping=True,  # Test connections for liveness when checked out from pool
        connect_args=postgres_connect_args(timeout_seconds),
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the given engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Open a session for a single operation and close it when done.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
