"""
Health endpoints for load balancers, orchestrators and operators.

Uptime is measured from app.state.started_at, set once when the app is built.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import __version__
from ..config import settings
from ..database import get_db
from ..services.listing_repository import ListingRepository

router = APIRouter(prefix="/health", tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_database(db: Session) -> dict:
    """Round-trip a SELECT 1; reports the failure instead of raising."""
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"status": "down", "error": str(e)[:100]}
    return {
        "status": "up",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "type": db.get_bind().dialect.name,
    }


def uptime_seconds(started_at: datetime, now: Optional[datetime] = None) -> float:
    return round(((now or datetime.now(timezone.utc)) - started_at).total_seconds(), 1)


@router.get("")
@router.get("/")
async def simple_health_check():
    return {"status": "healthy", "timestamp": _now(), "version": __version__}


@router.get("/live")
async def liveness_check():
    """The process is up and serving requests."""
    return {"status": "alive", "timestamp": _now()}


@router.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """Ready only when the database answers; 503 otherwise."""
    if check_database(db)["status"] != "up":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "reason": "database_unavailable", "timestamp": _now()}
        )
    return {"status": "ready", "timestamp": _now()}


@router.get("/detailed")
async def detailed_health_check(request: Request, db: Session = Depends(get_db)):
    database = check_database(db)
    healthy = database["status"] == "up"

    listings = None
    if healthy:
        repository = ListingRepository(db)
        listings = {"total": repository.count(), "available": repository.count(available_only=True)}

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": _now(),
        "version": __version__,
        "environment": settings.environment,
        "uptime_seconds": uptime_seconds(request.app.state.started_at),
        "checks": {"database": database},
        "listings": listings,
        "config": {
            "calendar_timezone": settings.calendar_timezone,
            "max_calendar_days": settings.max_calendar_days,
            "rate_limit_enabled": settings.rate_limit_enabled,
        },
    }
