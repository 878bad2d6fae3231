# Models package
from .listing import Listing
from .calendar_entry import CalendarEntry

__all__ = ["Listing", "CalendarEntry"]
