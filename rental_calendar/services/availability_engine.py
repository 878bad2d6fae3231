"""
Availability Engine

Reconciles a listing's defaults with per-date calendar overrides:
1. Calendar materialisation: one CalendarDay per date in an inclusive range
2. Booking check: availability + price totals over a half-open night range
3. Owner writes: per-date overrides and inclusive date blocking

Effective price resolution for a date:
    entry.price_override  if an entry exists and carries an override
    listing.price_per_night otherwise

The engine makes no "past date" judgement; that policy lives with the caller
so historical ranges stay queryable for reporting.
"""

from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterator, List, Optional, Sequence
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..exceptions import InvalidRangeError
from ..utils.logging_config import get_logger
from .calendar_store import CalendarStore, SqlCalendarStore

logger = get_logger(__name__)

CENT = Decimal("0.01")


@dataclass
class CalendarDay:
    """Materialised view of one date"""
    date: date
    is_available: bool
    price_override: Optional[Decimal]
    effective_price: Decimal


@dataclass
class DateEntry:
    """One requested override"""
    date: date
    is_available: bool
    price_override: Optional[Decimal] = None


@dataclass
class NightPrice:
    date: date
    price: Decimal


@dataclass
class AvailabilityCheckResult:
    """Outcome of a [check_in, check_out) booking check"""
    is_available: bool
    check_in: date
    check_out: date
    nights: int
    total_price: Decimal
    average_price_per_night: Decimal
    price_breakdown: List[NightPrice] = field(default_factory=list)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class AvailabilityEngine:
    """
    Stateless calendar logic on top of a CalendarStore.

    Listings are read-only records exposing id, price_per_night and availability.
    Invalid ranges fail with InvalidRangeError before the store is touched;
    store errors propagate unchanged and are never retried here.
    """

    def __init__(self, store: CalendarStore):
        self.store = store

    def _resolve(self, listing, day: date, entry) -> CalendarDay:
        default_price = _as_decimal(listing.price_per_night)
        if entry is None:
            return CalendarDay(
                date=day,
                is_available=bool(listing.availability),
                price_override=None,
                effective_price=default_price,
            )

        override = _as_decimal(entry.price_override) if entry.price_override is not None else None
        return CalendarDay(
            date=day,
            is_available=bool(entry.is_available),
            price_override=override,
            effective_price=override if override is not None else default_price,
        )

    def _entries_by_date(self, listing, start: date, end: date) -> Dict[date, object]:
        # Single round trip regardless of range length
        return {e.date: e for e in self.store.get_range(listing.id, start, end)}

    def get_calendar(self, listing, start_date: date, end_date: date) -> List[CalendarDay]:
        """
        Materialise start_date..end_date (inclusive).

        Returns exactly (end_date - start_date).days + 1 days, ascending, no gaps.
        """
        if start_date > end_date:
            raise InvalidRangeError.for_dates(start_date, end_date, "start_date must not be after end_date")

        entries = self._entries_by_date(listing, start_date, end_date)
        return [self._resolve(listing, day, entries.get(day)) for day in iter_days(start_date, end_date)]

    def update_range(self, listing, date_entries: Sequence[DateEntry]) -> List[CalendarDay]:
        """
        Upsert one override per entry and return the resolved day for each.

        Entries are applied one at a time. With a store that commits per write,
        a failure part-way leaves earlier entries applied; callers needing
        all-or-nothing must wrap the call in a transaction.
        """
        if not date_entries:
            raise InvalidRangeError("At least one date entry is required")

        resolved = []
        for item in date_entries:
            override = _as_decimal(item.price_override) if item.price_override is not None else None
            entry = self.store.upsert(listing.id, item.date, item.is_available, override)
            resolved.append(self._resolve(listing, item.date, entry))

        logger.calendar_updated(listing.id, len(resolved))
        return resolved

    def check_availability(self, listing, check_in: date, check_out: date) -> AvailabilityCheckResult:
        """
        Check a stay over the nights [check_in, check_out).

        The check-out date is not a night. The stay is available only if
        every night resolves to available.
        """
        if check_in >= check_out:
            raise InvalidRangeError.for_dates(check_in, check_out, "check_out must be after check_in")

        last_night = check_out - timedelta(days=1)
        entries = self._entries_by_date(listing, check_in, last_night)

        is_available = True
        total = Decimal("0")
        breakdown = []
        for night in iter_days(check_in, last_night):
            day = self._resolve(listing, night, entries.get(night))
            is_available = is_available and day.is_available
            total += day.effective_price
            breakdown.append(NightPrice(date=night, price=day.effective_price))

        nights = len(breakdown)
        average = (total / nights).quantize(CENT, rounding=ROUND_HALF_UP) if nights else Decimal("0")

        return AvailabilityCheckResult(
            is_available=is_available,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            total_price=total.quantize(CENT, rounding=ROUND_HALF_UP),
            average_price_per_night=average,
            price_breakdown=breakdown,
        )

    def block_range(
        self,
        listing,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None
    ) -> List[date]:
        """
        Mark start_date..end_date (both inclusive) unavailable and clear price overrides.

        Unlike check_availability, both ends count here. `reason` is logged only.
        """
        if start_date > end_date:
            raise InvalidRangeError.for_dates(start_date, end_date, "start_date must not be after end_date")

        days = list(iter_days(start_date, end_date))
        self.update_range(listing, [DateEntry(date=d, is_available=False) for d in days])

        logger.dates_blocked(listing.id, start_date.isoformat(), end_date.isoformat(), reason)
        return days


def get_availability_engine(db: Session) -> AvailabilityEngine:
    """Factory function to get an engine over the SQL calendar store"""
    return AvailabilityEngine(SqlCalendarStore(db))
