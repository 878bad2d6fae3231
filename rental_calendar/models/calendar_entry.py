"""
Calendar Entry Model

Per-date availability / price override for a listing.
A row exists only for dates the owner explicitly touched.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Boolean, Numeric, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class CalendarEntry(Base):
    __tablename__ = "calendar_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    listing_id = Column(String(36), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    # Overrides the listing default for this date
    is_available = Column(Boolean, nullable=False, default=True)
    # NULL means "use listing.price_per_night"
    price_override = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    listing = relationship("Listing", back_populates="calendar_entries")

    __table_args__ = (
        # Unique constraint: one entry per listing per date
        UniqueConstraint('listing_id', 'date', name='uq_calendar_listing_date'),
        Index('ix_calendar_listing_date_available', 'listing_id', 'date', 'is_available'),
        Index('ix_calendar_date_available', 'date', 'is_available'),
    )

    def __repr__(self):
        status = "available" if self.is_available else "blocked"
        return f"<CalendarEntry {self.listing_id} {self.date} {status}>"
