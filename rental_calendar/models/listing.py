"""
Listing Model

A rentable property. The calendar engine only reads its defaults
(price_per_night, availability) and coordinates.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, Numeric, Integer, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import relationship
from ..database import Base


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # JWT subject of the owning account (issued by the auth service)
    owner_id = Column(String(36), nullable=True, index=True)

    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Geolocation (nullable - not every listing is mapped)
    latitude = Column(Numeric(10, 8, asdecimal=False), nullable=True)
    longitude = Column(Numeric(11, 8, asdecimal=False), nullable=True)

    # Defaults used for every date without a calendar override
    price_per_night = Column(Numeric(10, 2), nullable=False)
    availability = Column(Boolean, nullable=False, default=True)

    amenities = Column(JSON, nullable=True)
    max_guests = Column(Integer, default=1)
    bedrooms = Column(Integer, default=1)
    bathrooms = Column(Integer, default=1)
    average_rating = Column(Numeric(3, 2), default=0)
    total_reviews = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Soft Delete
    is_deleted = Column(Boolean, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    calendar_entries = relationship(
        "CalendarEntry",
        back_populates="listing",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_listings_lat_lng", "latitude", "longitude"),
        Index("ix_listings_availability_price", "availability", "price_per_night"),
    )

    def __repr__(self):
        return f"<Listing {self.name} ({self.id})>"
