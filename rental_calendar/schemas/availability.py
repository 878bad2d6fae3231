"""
Calendar Schemas

Pydantic models for calendar API requests and responses.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator


class CalendarDayResponse(BaseModel):
    """Schema for a single materialised day"""
    date: date
    is_available: bool
    price_override: Optional[Decimal] = None
    effective_price: Decimal

    class Config:
        from_attributes = True


class CalendarListingSummary(BaseModel):
    id: str
    name: str
    default_price: Decimal
    default_availability: bool


class CalendarResponse(BaseModel):
    listing: CalendarListingSummary
    start_date: date
    end_date: date
    calendar: List[CalendarDayResponse]


class DateEntryRequest(BaseModel):
    """One date to override"""
    date: date
    is_available: bool
    price_override: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)


class CalendarUpdateRequest(BaseModel):
    dates: List[DateEntryRequest] = Field(..., min_length=1)


class AvailabilityCheckRequest(BaseModel):
    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_order(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class NightPriceResponse(BaseModel):
    date: date
    price: Decimal

    class Config:
        from_attributes = True


class AvailabilityCheckResponse(BaseModel):
    is_available: bool
    check_in: date
    check_out: date
    nights: int
    total_price: Decimal
    average_price_per_night: Decimal
    price_breakdown: List[NightPriceResponse]

    class Config:
        from_attributes = True


class BlockDatesRequest(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BlockDatesResponse(BaseModel):
    blocked_dates: List[date]
    reason: str
