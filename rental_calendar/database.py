import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

PG_ENV = {
    "host": ("PGHOST",),
    "user": ("PGUSER", "POSTGRES_USER"),
    "password": ("PGPASSWORD", "POSTGRES_PASSWORD"),
    "database": ("PGDATABASE", "POSTGRES_DB"),
}


def _first_env(*names):
    for name in names:
        if os.environ.get(name):
            return os.environ[name]
    return None


def resolve_database_url() -> str:
    """
    DATABASE_URL if set, else a PostgreSQL URL assembled from PG* variables,
    else (outside production) the SQLite default.
    """
    if os.environ.get("DATABASE_URL"):
        return settings.database_url

    parts = {key: _first_env(*names) for key, names in PG_ENV.items()}
    if all(parts.values()):
        port = os.environ.get("PGPORT", "5432")
        logger.info(f"Using PG* variables for database {parts['host']}:{port}/{parts['database']}")
        return f"postgresql://{parts['user']}:{parts['password']}@{parts['host']}:{port}/{parts['database']}"

    if settings.is_production:
        raise RuntimeError("DATABASE_URL is not set in production")
    return settings.database_url


database_url = resolve_database_url()

engine = create_engine(
    database_url,
    # SQLite connections are shared across the threadpool
    connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session. Routers commit; anything uncommitted is discarded on close."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """create_all for development databases; production uses alembic."""
    from . import models  # noqa: F401  registers models on Base.metadata

    Base.metadata.create_all(bind=engine)
