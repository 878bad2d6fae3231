"""
Listings API Router

CRUD for listings plus the three search surfaces:
- GET /api/listings          typed filters, paginated
- GET /api/listings/nearby   proximity ranking around a point
- GET /api/listings/map      markers inside a viewport
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models.listing import Listing
from ..services.listing_repository import ListingRepository
from ..services.proximity_search import ProximitySearchEngine
from ..utils.db_helpers import acquire_row_lock_or_fail
from ..utils.dependencies import ensure_owner, get_current_owner_id
from ..utils.logging_config import get_logger
from ..utils.rate_limiter import get_rate_limit, limiter
from ..schemas.listing import (
    ListingAvailabilityUpdate,
    ListingCreate,
    ListingQueryOptions,
    ListingResponse,
    ListingSearchMeta,
    ListingSearchResponse,
    ListingSortField,
    ListingUpdate,
    MapBounds,
    MapMarker,
    MapResponse,
    NearbyListing,
    NearbyResponse,
    SearchCenter,
    SortDirection,
)

router = APIRouter(prefix="/api/listings", tags=["Listings"])
logger = get_logger(__name__)

proximity_engine = ProximitySearchEngine()


def map_result_limit(zoom_level: int) -> int:
    """Fewer markers when zoomed out."""
    if zoom_level < 10:
        return 50
    if zoom_level < 15:
        return 100
    return 200


def listing_query_options(
    name: Optional[str] = Query(None, description="Name contains (case-insensitive)"),
    location: Optional[str] = Query(None, description="Location contains (case-insensitive)"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_guests: Optional[int] = Query(None, ge=1),
    bedrooms: Optional[int] = Query(None, ge=0),
    bathrooms: Optional[int] = Query(None, ge=0),
    min_rating: Optional[Decimal] = Query(None, ge=0, le=5),
    availability: Optional[bool] = Query(None, description="Default availability flag"),
    amenities: Optional[List[str]] = Query(None, description="Every listed amenity must be present"),
    check_in: Optional[date] = Query(None),
    check_out: Optional[date] = Query(None),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    sort_by: ListingSortField = Query(ListingSortField.CREATED_AT),
    sort_direction: SortDirection = Query(SortDirection.DESC),
    page: int = Query(1, ge=1),
    page_size: int = Query(15, ge=1, le=100),
) -> ListingQueryOptions:
    """Collect query parameters into one validated options object."""
    try:
        return ListingQueryOptions(
            name=name,
            location=location,
            min_price=min_price,
            max_price=max_price,
            min_guests=min_guests,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            min_rating=min_rating,
            availability=availability,
            amenities=amenities,
            check_in=check_in,
            check_out=check_out,
            latitude=latitude,
            longitude=longitude,
            radius_km=radius_km,
            sort_by=sort_by,
            sort_direction=sort_direction,
            page=page,
            page_size=page_size,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False)
        )


def _lock_owned_listing(db: Session, listing_id: str, owner_id: str) -> Listing:
    listing = acquire_row_lock_or_fail(
        db,
        Listing,
        (Listing.id == listing_id) & (Listing.is_deleted == False),
        error_message="Listing is being updated, try again"
    )
    ensure_owner(listing, owner_id)
    return listing


# ==================
# Search
# ==================

@router.get("", response_model=ListingSearchResponse)
@router.get("/", response_model=ListingSearchResponse)
@limiter.limit(get_rate_limit("search"))
async def search_listings(
    request: Request,
    options: ListingQueryOptions = Depends(listing_query_options),
    db: Session = Depends(get_db)
):
    """Search listings with any combination of filters."""
    items, total = ListingRepository(db).search(options)
    filters = options.applied_filters()

    search_center = None
    if options.has_location:
        search_center = SearchCenter(
            latitude=options.latitude,
            longitude=options.longitude,
            radius_km=options.radius_km or settings.default_search_radius_km,
        )

    response = ListingSearchResponse.create(
        items=[ListingResponse.model_validate(listing) for listing in items],
        total=total,
        page=options.page,
        page_size=options.page_size,
    )
    response.meta = ListingSearchMeta(
        filters_applied=len(filters),
        total_results=total,
        search_center=search_center,
    )

    logger.search_performed("filter", total, **filters)
    return response


@router.get("/nearby", response_model=NearbyResponse)
@limiter.limit(get_rate_limit("search"))
async def nearby_listings(
    request: Request,
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(
        settings.default_search_radius_km,
        ge=settings.min_search_radius_km,
        le=settings.max_search_radius_km,
        description="Search radius in km"
    ),
    limit: int = Query(settings.nearby_default_limit, ge=1, le=settings.nearby_max_limit),
    exact: bool = Query(False, description="Also compute great-circle distance and rank by it"),
    db: Session = Depends(get_db)
):
    """Available listings around a point, closest first."""
    candidates = ListingRepository(db).nearby_candidates(latitude, longitude, radius)
    results = proximity_engine.nearby(latitude, longitude, radius, candidates, exact=exact)[:limit]

    logger.search_performed("nearby", len(results), latitude=latitude, longitude=longitude, radius_km=radius)

    return NearbyResponse(
        items=[
            NearbyListing(
                listing=ListingResponse.model_validate(r.listing),
                proximity_score=r.proximity_score,
                distance_km=r.distance_km,
            )
            for r in results
        ],
        search_center=SearchCenter(latitude=latitude, longitude=longitude, radius_km=radius),
        total_results=len(results),
    )


@router.get("/map", response_model=MapResponse)
@limiter.limit(get_rate_limit("search"))
async def map_listings(
    request: Request,
    north: Optional[float] = Query(None, ge=-90, le=90),
    south: Optional[float] = Query(None, ge=-90, le=90),
    east: Optional[float] = Query(None, ge=-180, le=180),
    west: Optional[float] = Query(None, ge=-180, le=180),
    zoom_level: int = Query(10, ge=1, le=20),
    db: Session = Depends(get_db)
):
    """
    Markers for a map viewport.

    Bounds are all-or-none; without them every mapped listing is a candidate.
    """
    given = [v is not None for v in (north, south, east, west)]
    if any(given) and not all(given):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="north, south, east and west must be given together"
        )

    bounds = None
    repository = ListingRepository(db)
    if all(given):
        bounds = MapBounds(north=north, south=south, east=east, west=west)
        listings = proximity_engine.within_bounds(
            north, south, east, west, repository.map_candidates(bounds)
        )
    else:
        listings = repository.map_candidates()

    listings = listings[:map_result_limit(zoom_level)]
    logger.search_performed("map", len(listings), zoom_level=zoom_level)

    return MapResponse(
        items=[MapMarker.model_validate(listing) for listing in listings],
        total_results=len(listings),
        zoom_level=zoom_level,
        bounds=bounds,
    )


# ==================
# CRUD
# ==================

@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(listing_id: str, db: Session = Depends(get_db)):
    return ListingRepository(db).get(listing_id)


@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    payload: ListingCreate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id)
):
    """Create a listing owned by the caller."""
    listing = ListingRepository(db).create(payload.model_dump(), owner_id=owner_id)
    db.commit()
    db.refresh(listing)
    return listing


@router.put("/{listing_id}", response_model=ListingResponse)
@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: str,
    payload: ListingUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id)
):
    """Update the fields that were sent."""
    listing = _lock_owned_listing(db, listing_id, owner_id)
    ListingRepository(db).update(listing, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(listing)
    return listing


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id)
):
    """Soft delete"""
    listing = _lock_owned_listing(db, listing_id, owner_id)
    ListingRepository(db).soft_delete(listing)
    db.commit()


@router.patch("/{listing_id}/availability", response_model=ListingResponse)
async def update_listing_availability(
    listing_id: str,
    payload: ListingAvailabilityUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id)
):
    """Toggle the default availability used for dates without an override."""
    listing = _lock_owned_listing(db, listing_id, owner_id)
    ListingRepository(db).set_default_availability(listing, payload.availability)
    db.commit()
    db.refresh(listing)
    return listing
