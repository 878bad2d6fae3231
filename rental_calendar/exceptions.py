"""
Calendar & search errors.

InvalidRangeError maps to a 4xx at the HTTP boundary,
StoreUnavailableError to a 5xx.
"""

from datetime import date
from typing import Optional


class CalendarError(Exception):
    """Base class for errors raised by the calendar and search core."""


class InvalidRangeError(CalendarError, ValueError):
    """A date or numeric range violates an ordering/positivity precondition."""

    def __init__(self, message: str, start=None, end=None):
        super().__init__(message)
        self.start = start
        self.end = end

    @classmethod
    def for_dates(cls, start: date, end: date, rule: str) -> "InvalidRangeError":
        return cls(f"Invalid date range {start.isoformat()} .. {end.isoformat()}: {rule}", start, end)


class StoreUnavailableError(CalendarError):
    """The calendar store or listing repository failed. Never retried here."""


class ListingNotFoundError(CalendarError, LookupError):
    def __init__(self, listing_id: Optional[str]):
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id
