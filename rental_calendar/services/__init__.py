# Services package
from .calendar_store import CalendarStore, SqlCalendarStore
from .availability_engine import (
    AvailabilityEngine,
    AvailabilityCheckResult,
    CalendarDay,
    DateEntry,
    NightPrice,
    get_availability_engine,
)
from .proximity_search import ProximitySearchEngine, ProximityResult, bounding_box, distance_km
from .listing_repository import ListingRepository

__all__ = [
    "CalendarStore", "SqlCalendarStore",
    "AvailabilityEngine", "AvailabilityCheckResult", "CalendarDay", "DateEntry", "NightPrice",
    "get_availability_engine",
    "ProximitySearchEngine", "ProximityResult", "bounding_box", "distance_km",
    "ListingRepository",
]
