"""
Tests for the Calendar API

Dates are relative to today because past dates are rejected by the endpoints.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from rental_calendar.models import CalendarEntry


@pytest.fixture
def listing(make_listing):
    return make_listing()


def calendar_url(listing_id, suffix=""):
    return f"/api/listings/{listing_id}/calendar{suffix}"


class TestGetCalendar:

    def test_defaults(self, client, listing, future_day):
        start, end = future_day(0), future_day(6)
        response = client.get(calendar_url(listing.id), params={
            "start_date": start.isoformat(), "end_date": end.isoformat()
        })

        assert response.status_code == 200
        data = response.json()
        assert data["listing"]["id"] == listing.id
        assert len(data["calendar"]) == 7
        assert data["calendar"][0]["date"] == start.isoformat()
        assert all(day["is_available"] for day in data["calendar"])
        assert Decimal(str(data["calendar"][0]["effective_price"])) == Decimal("100.00")

    def test_single_day(self, client, listing, future_day):
        day = future_day().isoformat()
        response = client.get(calendar_url(listing.id), params={"start_date": day, "end_date": day})
        assert response.status_code == 200
        assert len(response.json()["calendar"]) == 1

    def test_past_start_rejected(self, client, listing):
        start = date.today() - timedelta(days=5)
        response = client.get(calendar_url(listing.id), params={
            "start_date": start.isoformat(), "end_date": date.today().isoformat()
        })
        assert response.status_code == 422

    def test_reversed_range_rejected(self, client, listing, future_day):
        response = client.get(calendar_url(listing.id), params={
            "start_date": future_day(5).isoformat(), "end_date": future_day(0).isoformat()
        })
        assert response.status_code == 422

    def test_range_too_long(self, client, listing, future_day):
        response = client.get(calendar_url(listing.id), params={
            "start_date": future_day(0).isoformat(), "end_date": future_day(400).isoformat()
        })
        assert response.status_code == 422

    def test_unknown_listing(self, client, future_day):
        day = future_day().isoformat()
        response = client.get(calendar_url("missing"), params={"start_date": day, "end_date": day})
        assert response.status_code == 404


class TestUpdateCalendar:

    def test_override_then_read(self, client, listing, auth_headers, future_day):
        target = future_day(1)
        response = client.patch(calendar_url(listing.id), headers=auth_headers, json={
            "dates": [{"date": target.isoformat(), "is_available": True, "price_override": "250.00"}]
        })
        assert response.status_code == 200
        assert Decimal(str(response.json()[0]["effective_price"])) == Decimal("250.00")

        calendar = client.get(calendar_url(listing.id), params={
            "start_date": future_day(0).isoformat(), "end_date": future_day(2).isoformat()
        }).json()["calendar"]
        prices = [Decimal(str(day["effective_price"])) for day in calendar]
        assert prices == [Decimal("100.00"), Decimal("250.00"), Decimal("100.00")]

    def test_requires_auth(self, client, listing, future_day):
        response = client.patch(calendar_url(listing.id), json={
            "dates": [{"date": future_day().isoformat(), "is_available": False}]
        })
        assert response.status_code == 401

    def test_invalid_token(self, client, listing, future_day):
        response = client.patch(calendar_url(listing.id), headers={"Authorization": "Bearer nope"}, json={
            "dates": [{"date": future_day().isoformat(), "is_available": False}]
        })
        assert response.status_code == 401

    def test_other_owner_forbidden(self, client, listing, other_auth_headers, future_day):
        response = client.patch(calendar_url(listing.id), headers=other_auth_headers, json={
            "dates": [{"date": future_day().isoformat(), "is_available": False}]
        })
        assert response.status_code == 403

    def test_empty_batch_rejected(self, client, listing, auth_headers):
        response = client.patch(calendar_url(listing.id), headers=auth_headers, json={"dates": []})
        assert response.status_code == 422

    def test_non_positive_price_rejected(self, client, listing, auth_headers, future_day):
        response = client.patch(calendar_url(listing.id), headers=auth_headers, json={
            "dates": [{"date": future_day().isoformat(), "is_available": True, "price_override": 0}]
        })
        assert response.status_code == 422

    def test_past_date_rejects_whole_batch(self, client, db, listing, auth_headers, future_day):
        response = client.patch(calendar_url(listing.id), headers=auth_headers, json={
            "dates": [
                {"date": future_day().isoformat(), "is_available": False},
                {"date": (date.today() - timedelta(days=3)).isoformat(), "is_available": False},
            ]
        })
        assert response.status_code == 422
        assert db.query(CalendarEntry).count() == 0


class TestCheckAvailability:

    def test_three_nights(self, client, listing, future_day):
        response = client.post(calendar_url(listing.id, "/check"), json={
            "check_in": future_day(0).isoformat(), "check_out": future_day(3).isoformat()
        })

        assert response.status_code == 200
        data = response.json()
        assert data["is_available"] is True
        assert data["nights"] == 3
        assert Decimal(str(data["total_price"])) == Decimal("300.00")
        assert len(data["price_breakdown"]) == 3

    def test_same_day_rejected(self, client, listing, future_day):
        day = future_day().isoformat()
        response = client.post(calendar_url(listing.id, "/check"), json={"check_in": day, "check_out": day})
        assert response.status_code == 422

    def test_past_check_in_rejected(self, client, listing):
        response = client.post(calendar_url(listing.id, "/check"), json={
            "check_in": (date.today() - timedelta(days=2)).isoformat(),
            "check_out": (date.today() + timedelta(days=2)).isoformat(),
        })
        assert response.status_code == 422


class TestBlockDates:

    def test_block_inclusive_then_check(self, client, listing, auth_headers, future_day):
        response = client.post(calendar_url(listing.id, "/block"), headers=auth_headers, json={
            "start_date": future_day(0).isoformat(), "end_date": future_day(2).isoformat(), "reason": "repairs"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["blocked_dates"] == [future_day(i).isoformat() for i in range(3)]
        assert data["reason"] == "repairs"

        check = client.post(calendar_url(listing.id, "/check"), json={
            "check_in": future_day(0).isoformat(), "check_out": future_day(3).isoformat()
        }).json()
        assert check["is_available"] is False

        after = client.post(calendar_url(listing.id, "/check"), json={
            "check_in": future_day(3).isoformat(), "check_out": future_day(5).isoformat()
        }).json()
        assert after["is_available"] is True

    def test_default_reason(self, client, listing, auth_headers, future_day):
        day = future_day().isoformat()
        response = client.post(calendar_url(listing.id, "/block"), headers=auth_headers, json={
            "start_date": day, "end_date": day
        })
        assert response.json()["reason"] == "No reason provided"

    def test_reversed_range_rejected(self, client, listing, auth_headers, future_day):
        response = client.post(calendar_url(listing.id, "/block"), headers=auth_headers, json={
            "start_date": future_day(3).isoformat(), "end_date": future_day(0).isoformat()
        })
        assert response.status_code == 422

    def test_other_owner_forbidden(self, client, listing, other_auth_headers, future_day):
        day = future_day().isoformat()
        response = client.post(calendar_url(listing.id, "/block"), headers=other_auth_headers, json={
            "start_date": day, "end_date": day
        })
        assert response.status_code == 403


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
