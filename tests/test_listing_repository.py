"""
Tests for the Listing Repository search and candidate queries.
"""

import pytest
from datetime import date
from decimal import Decimal

from rental_calendar.exceptions import ListingNotFoundError
from rental_calendar.schemas.listing import ListingQueryOptions, ListingSortField, MapBounds, SortDirection
from rental_calendar.services.calendar_store import SqlCalendarStore
from rental_calendar.services.listing_repository import ListingRepository


@pytest.fixture
def repo(db):
    return ListingRepository(db)


@pytest.fixture
def catalogue(make_listing):
    return {
        "cheap": make_listing(name="Cheap Room", location="Porto", price_per_night=Decimal("40.00"),
                              latitude=41.1579, longitude=-8.6291, max_guests=2, bedrooms=1),
        "mid": make_listing(name="Alfama Flat", location="Lisbon", price_per_night=Decimal("90.00"),
                            latitude=38.7139, longitude=-9.1334, max_guests=4, bedrooms=2,
                            average_rating=Decimal("4.50")),
        "luxury": make_listing(name="Luxury Villa", location="Lisbon", price_per_night=Decimal("400.00"),
                               latitude=38.7223, longitude=-9.1393, max_guests=8, bedrooms=4,
                               average_rating=Decimal("4.90")),
        "closed": make_listing(name="Closed Loft", location="Lisbon", price_per_night=Decimal("70.00"),
                               latitude=38.7200, longitude=-9.1400, availability=False),
    }


def names(items):
    return {listing.name for listing in items}


class TestGet:

    def test_get_existing(self, repo, catalogue):
        assert repo.get(catalogue["mid"].id).name == "Alfama Flat"

    def test_missing_raises(self, repo):
        with pytest.raises(ListingNotFoundError):
            repo.get("does-not-exist")

    def test_soft_deleted_is_hidden(self, repo, db, catalogue):
        repo.soft_delete(catalogue["mid"])
        db.commit()

        with pytest.raises(ListingNotFoundError):
            repo.get(catalogue["mid"].id)


class TestSearch:

    def test_no_filters_returns_all_active(self, repo, catalogue):
        items, total = repo.search(ListingQueryOptions())
        assert total == 4
        assert len(items) == 4

    def test_location_and_price(self, repo, catalogue):
        items, total = repo.search(ListingQueryOptions(location="lisbon", max_price=Decimal("100")))
        assert names(items) == {"Alfama Flat", "Closed Loft"}
        assert total == 2

    def test_guests_bedrooms_rating(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(min_guests=4, bedrooms=2, min_rating=Decimal("4.6")))
        assert names(items) == {"Luxury Villa"}

    def test_availability_flag(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(availability=True))
        assert "Closed Loft" not in names(items)

        items, _ = repo.search(ListingQueryOptions(availability=False))
        assert names(items) == {"Closed Loft"}

    def test_amenities_must_all_match(self, repo, make_listing, catalogue):
        make_listing(name="Pool House", amenities=["wifi", "pool", "parking"])
        make_listing(name="Wifi Flat", amenities=["wifi"])

        items, _ = repo.search(ListingQueryOptions(amenities=["wifi"]))
        assert names(items) == {"Pool House", "Wifi Flat"}

        items, _ = repo.search(ListingQueryOptions(amenities=["pool", "wifi"]))
        assert names(items) == {"Pool House"}

        items, _ = repo.search(ListingQueryOptions(amenities=["sauna"]))
        assert items == []

    def test_sort_by_price_ascending(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(
            sort_by=ListingSortField.PRICE, sort_direction=SortDirection.ASC
        ))
        assert [i.name for i in items][:2] == ["Cheap Room", "Closed Loft"]

    def test_pagination(self, repo, catalogue):
        items, total = repo.search(ListingQueryOptions(
            sort_by=ListingSortField.NAME, sort_direction=SortDirection.ASC, page=2, page_size=3
        ))
        assert total == 4
        assert [i.name for i in items] == ["Luxury Villa"]

    def test_location_radius_excludes_other_city(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(latitude=38.7223, longitude=-9.1393, radius_km=5))
        assert "Cheap Room" not in names(items)
        assert "Alfama Flat" in names(items)

    def test_sort_by_distance(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(
            latitude=38.7223, longitude=-9.1393, radius_km=5,
            sort_by=ListingSortField.DISTANCE, sort_direction=SortDirection.ASC,
        ))
        assert items[0].name == "Luxury Villa"

    def test_distance_sort_ignores_direction(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(
            latitude=38.7223, longitude=-9.1393, radius_km=5, sort_by=ListingSortField.DISTANCE,
        ))
        assert [i.name for i in items] == ["Luxury Villa", "Closed Loft", "Alfama Flat"]

    def test_location_ranks_nearest_before_sort_column(self, repo, catalogue):
        items, _ = repo.search(ListingQueryOptions(
            latitude=38.7223, longitude=-9.1393, radius_km=5,
            sort_by=ListingSortField.PRICE, sort_direction=SortDirection.ASC,
        ))
        assert [i.name for i in items] == ["Luxury Villa", "Closed Loft", "Alfama Flat"]

    def test_available_on_dates_excludes_blocked_nights(self, repo, db, catalogue):
        store = SqlCalendarStore(db)
        store.upsert(catalogue["mid"].id, date(2025, 12, 2), False)
        # Check-out day blocked does not matter
        store.upsert(catalogue["luxury"].id, date(2025, 12, 4), False)
        db.commit()

        items, _ = repo.search(ListingQueryOptions(check_in=date(2025, 12, 1), check_out=date(2025, 12, 4)))

        assert names(items) == {"Cheap Room", "Luxury Villa"}


class TestQueryOptions:

    def test_price_range_order(self):
        with pytest.raises(ValueError):
            ListingQueryOptions(min_price=Decimal("100"), max_price=Decimal("50"))

    def test_dates_together(self):
        with pytest.raises(ValueError):
            ListingQueryOptions(check_in=date(2025, 12, 1))

    def test_distance_sort_needs_location(self):
        with pytest.raises(ValueError):
            ListingQueryOptions(sort_by=ListingSortField.DISTANCE)

    def test_applied_filters(self):
        options = ListingQueryOptions(location="Lisbon", page=3)
        assert options.applied_filters() == {"location": "Lisbon"}

    def test_applied_filters_keeps_false_availability(self):
        options = ListingQueryOptions(availability=False, amenities=[])
        assert options.applied_filters() == {"availability": False}


class TestCandidates:

    def test_nearby_candidates_only_available(self, repo, catalogue):
        candidates = repo.nearby_candidates(38.7223, -9.1393, 5.0)
        assert names(candidates) == {"Alfama Flat", "Luxury Villa"}

    def test_map_candidates_bounds(self, repo, catalogue):
        bounds = MapBounds(north=42.0, south=41.0, east=-8.0, west=-9.0)
        assert names(repo.map_candidates(bounds)) == {"Cheap Room"}

    def test_map_candidates_skip_unmapped(self, repo, make_listing, catalogue):
        make_listing(name="Nowhere", latitude=None, longitude=None)
        assert "Nowhere" not in names(repo.map_candidates())

    def test_count(self, repo, catalogue):
        assert repo.count() == 4
        assert repo.count(available_only=True) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
