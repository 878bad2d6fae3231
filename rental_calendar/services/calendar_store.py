"""
Calendar Store

Durable per-date override storage keyed by (listing_id, date).

The engine only needs two operations, so any store providing
get_range() and upsert() with the uniqueness guarantee will do.
SqlCalendarStore is the SQLAlchemy-backed implementation used by the API.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from ..exceptions import StoreUnavailableError
from ..models.calendar_entry import CalendarEntry
from ..utils.db_helpers import is_postgres, is_sqlite

logger = logging.getLogger(__name__)


class CalendarStore(Protocol):
    """What the availability engine needs from storage."""

    def get_range(self, listing_id: str, start_date: date, end_date: date) -> Sequence[CalendarEntry]:
        """Explicit overrides for start_date..end_date (inclusive), ascending by date."""
        ...

    def upsert(
        self,
        listing_id: str,
        day: date,
        is_available: bool,
        price_override: Optional[Decimal] = None,
    ) -> CalendarEntry:
        """Create or overwrite the entry for (listing_id, day). Last write wins."""
        ...


class SqlCalendarStore:
    """
    CalendarStore over the calendar_entries table.

    Writes are flushed, never committed: the caller owns the transaction,
    so a whole batch can be committed or rolled back together.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_range(self, listing_id: str, start_date: date, end_date: date) -> List[CalendarEntry]:
        try:
            return self.db.query(CalendarEntry).filter(
                CalendarEntry.listing_id == listing_id,
                CalendarEntry.date >= start_date,
                CalendarEntry.date <= end_date
            ).order_by(CalendarEntry.date).all()
        except (OperationalError, DBAPIError) as e:
            logger.error(f"Calendar range read failed for listing {listing_id}: {e}")
            raise StoreUnavailableError("Calendar store is unavailable") from e

    def upsert(
        self,
        listing_id: str,
        day: date,
        is_available: bool,
        price_override: Optional[Decimal] = None,
    ) -> CalendarEntry:
        try:
            if is_postgres(self.db) or is_sqlite(self.db):
                return self._native_upsert(listing_id, day, is_available, price_override)
            return self._get_or_create(listing_id, day, is_available, price_override)
        except (OperationalError, DBAPIError) as e:
            logger.error(f"Calendar upsert failed for listing {listing_id} on {day}: {e}")
            raise StoreUnavailableError("Calendar store is unavailable") from e

    def _native_upsert(
        self,
        listing_id: str,
        day: date,
        is_available: bool,
        price_override: Optional[Decimal],
    ) -> CalendarEntry:
        """INSERT ... ON CONFLICT (listing_id, date) DO UPDATE - atomic per key."""
        insert = pg_insert if is_postgres(self.db) else sqlite_insert
        now = datetime.utcnow()

        stmt = insert(CalendarEntry).values(
            id=str(uuid.uuid4()),
            listing_id=listing_id,
            date=day,
            is_available=is_available,
            price_override=price_override,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["listing_id", "date"],
            set_={
                "is_available": stmt.excluded.is_available,
                "price_override": stmt.excluded.price_override,
                "updated_at": now,
            },
        )
        self.db.execute(stmt)

        # Reload so an entry already in the identity map reflects the new row
        return self.db.execute(
            select(CalendarEntry)
            .where(CalendarEntry.listing_id == listing_id, CalendarEntry.date == day)
            .execution_options(populate_existing=True)
        ).scalar_one()

    def _get_or_create(
        self,
        listing_id: str,
        day: date,
        is_available: bool,
        price_override: Optional[Decimal],
    ) -> CalendarEntry:
        entry = self.db.query(CalendarEntry).filter(
            CalendarEntry.listing_id == listing_id,
            CalendarEntry.date == day
        ).first()

        if not entry:
            entry = CalendarEntry(listing_id=listing_id, date=day)
            self.db.add(entry)

        entry.is_available = is_available
        entry.price_override = price_override
        self.db.flush()
        return entry
