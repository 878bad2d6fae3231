"""
Calendar API Router

Per-listing availability calendar: read, owner overrides, booking check, date blocking.
Past-date and range-length policy is enforced here; the engine itself is date-agnostic.
"""

from datetime import date
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.listing import Listing
from ..services.availability_engine import DateEntry, get_availability_engine
from ..services.listing_repository import ListingRepository
from ..utils.db_helpers import acquire_row_lock_or_fail
from ..utils.dependencies import (
    ensure_not_past,
    ensure_owner,
    ensure_range_length,
    get_current_owner_id,
)
from ..utils.rate_limiter import get_rate_limit, limiter
from ..schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    BlockDatesRequest,
    BlockDatesResponse,
    CalendarDayResponse,
    CalendarListingSummary,
    CalendarResponse,
    CalendarUpdateRequest,
)

router = APIRouter(prefix="/api/listings/{listing_id}/calendar", tags=["Calendar"])


def _lock_listing(db: Session, listing_id: str) -> Listing:
    """Serialise concurrent calendar writes for one listing (row lock on PostgreSQL)."""
    return acquire_row_lock_or_fail(
        db,
        Listing,
        (Listing.id == listing_id) & (Listing.is_deleted == False),
        error_message="Calendar is being updated, try again"
    )


@router.get("", response_model=CalendarResponse)
@limiter.limit(get_rate_limit("calendar_read"))
async def get_calendar(
    request: Request,
    listing_id: str,
    start_date: date = Query(..., description="First date (today or later)"),
    end_date: date = Query(..., description="Last date, inclusive"),
    db: Session = Depends(get_db)
):
    """
    Materialised calendar for start_date..end_date (inclusive).

    Dates without an override take the listing's default availability and price.
    """
    listing = ListingRepository(db).get(listing_id)
    ensure_not_past(start_date, "start_date")
    if start_date <= end_date:
        ensure_range_length(start_date, end_date)

    days = get_availability_engine(db).get_calendar(listing, start_date, end_date)

    return CalendarResponse(
        listing=CalendarListingSummary(
            id=listing.id,
            name=listing.name,
            default_price=listing.price_per_night,
            default_availability=listing.availability,
        ),
        start_date=start_date,
        end_date=end_date,
        calendar=[CalendarDayResponse.model_validate(d) for d in days],
    )


@router.patch("", response_model=list[CalendarDayResponse])
@limiter.limit(get_rate_limit("calendar_write"))
async def update_calendar(
    request: Request,
    listing_id: str,
    payload: CalendarUpdateRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id)
):
    """
    Set availability and optional price override for specific dates (owner only).

    The whole batch is committed together.
    """
    listing = _lock_listing(db, listing_id)
    ensure_owner(listing, owner_id)
    for item in payload.dates:
        ensure_not_past(item.date, "date")

    entries = [
        DateEntry(date=item.date, is_available=item.is_available, price_override=item.price_override)
        for item in payload.dates
    ]
    days = get_availability_engine(db).update_range(listing, entries)
    db.commit()

    return [CalendarDayResponse.model_validate(d) for d in days]


@router.post("/check", response_model=AvailabilityCheckResponse)
@limiter.limit(get_rate_limit("calendar_read"))
async def check_availability(
    request: Request,
    listing_id: str,
    payload: AvailabilityCheckRequest,
    db: Session = Depends(get_db)
):
    """
    Check a stay [check_in, check_out) and price it night by night.

    The check-out day is not charged.
    """
    listing = ListingRepository(db).get(listing_id)
    ensure_not_past(payload.check_in, "check_in")

    result = get_availability_engine(db).check_availability(listing, payload.check_in, payload.check_out)
    return AvailabilityCheckResponse.model_validate(result)


@router.post("/block", response_model=BlockDatesResponse)
@limiter.limit(get_rate_limit("calendar_write"))
async def block_dates(
    request: Request,
    listing_id: str,
    payload: BlockDatesRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id)
):
    """Block start_date..end_date, both ends included (owner only)."""
    listing = _lock_listing(db, listing_id)
    ensure_owner(listing, owner_id)
    ensure_not_past(payload.start_date, "start_date")
    ensure_range_length(payload.start_date, payload.end_date)

    blocked = get_availability_engine(db).block_range(
        listing, payload.start_date, payload.end_date, payload.reason
    )
    db.commit()

    return BlockDatesResponse(
        blocked_dates=blocked,
        reason=payload.reason or "No reason provided",
    )
