"""Initial schema - listings and calendar entries

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

- listings: rentable properties with default price/availability and coordinates
- calendar_entries: per-date overrides, one row per listing per date
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==================
    # listings table
    # ==================
    op.create_table(
        'listings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(36), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('latitude', sa.Numeric(10, 8), nullable=True),
        sa.Column('longitude', sa.Numeric(11, 8), nullable=True),
        sa.Column('price_per_night', sa.Numeric(10, 2), nullable=False),
        sa.Column('availability', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('amenities', sa.JSON, nullable=True),
        sa.Column('max_guests', sa.Integer, server_default='1'),
        sa.Column('bedrooms', sa.Integer, server_default='1'),
        sa.Column('bathrooms', sa.Integer, server_default='1'),
        sa.Column('average_rating', sa.Numeric(3, 2), server_default='0'),
        sa.Column('total_reviews', sa.Integer, server_default='0'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('is_deleted', sa.Boolean, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_listings_owner_id', 'listings', ['owner_id'])
    op.create_index('ix_listings_is_deleted', 'listings', ['is_deleted'])
    op.create_index('ix_listings_lat_lng', 'listings', ['latitude', 'longitude'])
    op.create_index('ix_listings_availability_price', 'listings', ['availability', 'price_per_night'])

    # ==================
    # calendar_entries table
    # ==================
    op.create_table(
        'calendar_entries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('listing_id', sa.String(36), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('is_available', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('price_override', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('listing_id', 'date', name='uq_calendar_listing_date'),
    )
    op.create_index('ix_calendar_listing_date_available', 'calendar_entries', ['listing_id', 'date', 'is_available'])
    op.create_index('ix_calendar_date_available', 'calendar_entries', ['date', 'is_available'])


def downgrade() -> None:
    op.drop_index('ix_calendar_date_available', table_name='calendar_entries')
    op.drop_index('ix_calendar_listing_date_available', table_name='calendar_entries')
    op.drop_table('calendar_entries')

    op.drop_index('ix_listings_availability_price', table_name='listings')
    op.drop_index('ix_listings_lat_lng', table_name='listings')
    op.drop_index('ix_listings_is_deleted', table_name='listings')
    op.drop_index('ix_listings_owner_id', table_name='listings')
    op.drop_table('listings')
