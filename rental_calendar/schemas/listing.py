"""
Listing Schemas

Pydantic models for listing CRUD, typed search options and search responses.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator

from .pagination import PaginatedResponse


class ListingBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    price_per_night: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    availability: bool = True
    amenities: Optional[List[str]] = None
    max_guests: int = Field(default=1, ge=1)
    bedrooms: int = Field(default=1, ge=0)
    bathrooms: int = Field(default=1, ge=0)


class ListingCreate(ListingBase):
    pass


class ListingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    price_per_night: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    availability: Optional[bool] = None
    amenities: Optional[List[str]] = None
    max_guests: Optional[int] = Field(None, ge=1)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)


class ListingAvailabilityUpdate(BaseModel):
    """Toggle the listing-wide default availability"""
    availability: bool


class ListingResponse(ListingBase):
    id: str
    owner_id: Optional[str] = None
    average_rating: Decimal = Decimal("0")
    total_reviews: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ListingSortField(str, Enum):
    CREATED_AT = "created_at"
    PRICE = "price_per_night"
    RATING = "average_rating"
    NAME = "name"
    DISTANCE = "distance"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ListingQueryOptions(BaseModel):
    """
    Every supported listing filter as a named optional field.
    Unset fields do not filter.
    """
    name: Optional[str] = None
    location: Optional[str] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_guests: Optional[int] = Field(None, ge=1)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    min_rating: Optional[Decimal] = Field(None, ge=0, le=5)
    availability: Optional[bool] = None
    amenities: Optional[List[str]] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: Optional[float] = Field(None, gt=0)
    sort_by: ListingSortField = ListingSortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=15, ge=1, le=100)

    @model_validator(mode="after")
    def check_ranges(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot be greater than max_price")
        if (self.check_in is None) != (self.check_out is None):
            raise ValueError("check_in and check_out must be given together")
        if self.check_in is not None and self.check_in >= self.check_out:
            raise ValueError("check_out must be after check_in")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        if self.sort_by == ListingSortField.DISTANCE and self.latitude is None:
            raise ValueError("sort_by=distance requires latitude and longitude")
        return self

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def applied_filters(self) -> dict:
        """Filters that were actually set (paging and sorting excluded)."""
        data = self.model_dump(exclude={"sort_by", "sort_direction", "page", "page_size"}, exclude_none=True)
        if not self.amenities:
            data.pop("amenities", None)
        return data


class SearchCenter(BaseModel):
    latitude: float
    longitude: float
    radius_km: float


class ListingSearchMeta(BaseModel):
    filters_applied: int
    total_results: int
    search_center: Optional[SearchCenter] = None


class NearbyListing(BaseModel):
    listing: ListingResponse
    proximity_score: float
    distance_km: Optional[float] = None


class NearbyResponse(BaseModel):
    items: List[NearbyListing]
    search_center: SearchCenter
    total_results: int


class MapMarker(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    price_per_night: Decimal
    average_rating: Decimal = Decimal("0")

    class Config:
        from_attributes = True


class MapBounds(BaseModel):
    north: float = Field(..., ge=-90, le=90)
    south: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)
    west: float = Field(..., ge=-180, le=180)


class MapResponse(BaseModel):
    items: List[MapMarker]
    total_results: int
    zoom_level: int
    bounds: Optional[MapBounds] = None


class ListingSearchResponse(PaginatedResponse[ListingResponse]):
    meta: Optional[ListingSearchMeta] = None
