"""
Dialect checks and row locking.

PostgreSQL gets real SELECT ... FOR UPDATE locks; SQLite (development
and tests) serialises writers at the database level, so the lock is skipped.
"""

import logging
from typing import Optional, Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


def is_postgres(db: Session) -> bool:
    return dialect_name(db) == "postgresql"


def is_sqlite(db: Session) -> bool:
    return dialect_name(db) == "sqlite"


def acquire_row_lock(db: Session, model: Type[ModelT], condition, nowait: bool = False) -> Optional[ModelT]:
    """
    First row of `model` matching `condition`, locked for the rest of the
    transaction on PostgreSQL. With nowait=True a held lock raises
    OperationalError instead of blocking.
    """
    query = db.query(model).filter(condition)
    if is_postgres(db):
        query = query.with_for_update(nowait=nowait)
    return query.first()


def acquire_row_lock_or_fail(
    db: Session,
    model: Type[ModelT],
    condition,
    error_message: str = "Resource is locked"
) -> ModelT:
    """
    Like acquire_row_lock(nowait=True), for request handlers:
    409 when another transaction holds the lock, 404 when nothing matches.
    """
    try:
        row = acquire_row_lock(db, model, condition, nowait=True)
    except OperationalError as e:
        if "lock" not in str(e).lower():
            raise
        logger.warning(f"Lock contention on {model.__name__}: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error_message)

    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{model.__name__} not found")
    return row
