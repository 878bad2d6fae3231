"""
Listing Repository

Query layer over the listings table used by the routers and as the
candidate source for proximity search.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import and_, cast, exists, func, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import ListingNotFoundError, StoreUnavailableError
from ..models.calendar_entry import CalendarEntry
from ..models.listing import Listing
from ..schemas.pagination import paginate_query
from ..schemas.listing import ListingQueryOptions, ListingSortField, MapBounds, SortDirection
from ..utils.db_helpers import is_postgres
from .proximity_search import bounding_box

logger = logging.getLogger(__name__)


class ListingRepository:

    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return self.db.query(Listing).filter(Listing.is_deleted == False)

    def get(self, listing_id: str) -> Listing:
        try:
            listing = self._active().filter(Listing.id == listing_id).first()
        except (OperationalError, DBAPIError) as e:
            raise StoreUnavailableError("Listing repository is unavailable") from e
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    def create(self, data: dict, owner_id: Optional[str] = None) -> Listing:
        listing = Listing(owner_id=owner_id, **data)
        self.db.add(listing)
        self.db.flush()
        logger.info(f"Listing created: {listing.name} (ID: {listing.id})")
        return listing

    def update(self, listing: Listing, data: dict) -> Listing:
        for key, value in data.items():
            setattr(listing, key, value)
        self.db.flush()
        logger.info(f"Listing updated: {listing.name} (ID: {listing.id})")
        return listing

    def soft_delete(self, listing: Listing) -> None:
        listing.is_deleted = True
        listing.deleted_at = datetime.utcnow()
        self.db.flush()
        logger.info(f"Listing deleted: {listing.name} (ID: {listing.id})")

    def set_default_availability(self, listing: Listing, availability: bool) -> Listing:
        listing.availability = availability
        self.db.flush()
        return listing

    # ==================
    # Search
    # ==================

    def search(self, options: ListingQueryOptions) -> Tuple[List[Listing], int]:
        """Apply every set filter in `options`, then sort and paginate."""
        query = self._active()

        if options.name:
            query = query.filter(Listing.name.ilike(f"%{options.name}%"))
        if options.location:
            query = query.filter(Listing.location.ilike(f"%{options.location}%"))

        if options.min_price is not None:
            query = query.filter(Listing.price_per_night >= options.min_price)
        if options.max_price is not None:
            query = query.filter(Listing.price_per_night <= options.max_price)

        if options.min_guests:
            query = query.filter(Listing.max_guests >= options.min_guests)
        if options.bedrooms:
            query = query.filter(Listing.bedrooms >= options.bedrooms)
        if options.bathrooms:
            query = query.filter(Listing.bathrooms >= options.bathrooms)
        if options.min_rating is not None:
            query = query.filter(Listing.average_rating >= options.min_rating)

        if options.availability is not None:
            query = query.filter(Listing.availability == options.availability)
        if options.amenities:
            query = self._with_amenities(query, options.amenities)

        if options.check_in and options.check_out:
            query = self._available_on_dates(query, options.check_in, options.check_out)

        proximity = None
        if options.has_location:
            radius = options.radius_km or settings.default_search_radius_km
            lat_min, lat_max, lon_min, lon_max = bounding_box(options.latitude, options.longitude, radius)
            query = query.filter(
                Listing.latitude.isnot(None),
                Listing.longitude.isnot(None),
                Listing.latitude.between(lat_min, lat_max),
                Listing.longitude.between(lon_min, lon_max),
            )
            proximity = (
                func.abs(Listing.latitude - options.latitude)
                + func.abs(Listing.longitude - options.longitude)
            )

        # Nearest first whenever a center is given; distance ignores sort_direction
        order = [proximity.asc()] if proximity is not None else []
        if options.sort_by != ListingSortField.DISTANCE:
            column = getattr(Listing, options.sort_by.value)
            order.append(column.asc() if options.sort_direction == SortDirection.ASC else column.desc())
        query = query.order_by(*order, Listing.id)

        try:
            items, total = paginate_query(query, options.page, options.page_size)
        except (OperationalError, DBAPIError) as e:
            raise StoreUnavailableError("Listing repository is unavailable") from e

        return items, total

    def _with_amenities(self, query, amenities):
        """Listings whose amenities list contains every requested amenity."""
        if is_postgres(self.db):
            return query.filter(cast(Listing.amenities, JSONB).contains(amenities))
        for amenity in amenities:
            each = func.json_each(Listing.amenities).table_valued("value")
            query = query.filter(select(each.c.value).where(each.c.value == amenity).exists())
        return query

    def _available_on_dates(self, query, check_in, check_out):
        """
        Listing available by default and no night in [check_in, check_out)
        explicitly marked unavailable.
        """
        last_night = check_out - timedelta(days=1)
        blocked = exists().where(and_(
            CalendarEntry.listing_id == Listing.id,
            CalendarEntry.date >= check_in,
            CalendarEntry.date <= last_night,
            CalendarEntry.is_available == False,
        ))
        return query.filter(Listing.availability == True, ~blocked)

    # ==================
    # Geo candidates
    # ==================

    def _mapped_available(self):
        return self._active().filter(
            Listing.availability == True,
            Listing.latitude.isnot(None),
            Listing.longitude.isnot(None),
        )

    def nearby_candidates(self, latitude: float, longitude: float, radius_km: float) -> List[Listing]:
        """Available listings inside the radius bounding box (unordered)."""
        lat_min, lat_max, lon_min, lon_max = bounding_box(latitude, longitude, radius_km)
        try:
            return self._mapped_available().filter(
                Listing.latitude.between(lat_min, lat_max),
                Listing.longitude.between(lon_min, lon_max),
            ).all()
        except (OperationalError, DBAPIError) as e:
            raise StoreUnavailableError("Listing repository is unavailable") from e

    def map_candidates(self, bounds: Optional[MapBounds] = None) -> List[Listing]:
        """Available listings with coordinates, narrowed to `bounds` when given."""
        query = self._mapped_available()
        if bounds is not None:
            query = query.filter(
                Listing.latitude.between(bounds.south, bounds.north),
                Listing.longitude.between(bounds.west, bounds.east),
            )
        try:
            return query.all()
        except (OperationalError, DBAPIError) as e:
            raise StoreUnavailableError("Listing repository is unavailable") from e

    def count(self, available_only: bool = False) -> int:
        query = self._active()
        if available_only:
            query = query.filter(Listing.availability == True)
        return query.count()
