"""
Tests for health endpoints and app-level middleware.
"""

import pytest
from datetime import datetime, timedelta, timezone

from rental_calendar.main import app
from rental_calendar.routers.health import uptime_seconds


class TestHealth:

    def test_simple(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_live(self, client):
        assert client.get("/health/live").json()["status"] == "alive"

    def test_ready(self, client):
        assert client.get("/health/ready").json()["status"] == "ready"

    def test_detailed(self, client, make_listing):
        make_listing()
        make_listing(availability=False)

        data = client.get("/health/detailed").json()

        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "up"
        assert data["listings"] == {"total": 2, "available": 1}
        assert data["uptime_seconds"] >= 0

    def test_uptime_from_start_timestamp(self):
        started = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert uptime_seconds(started, started + timedelta(minutes=2)) == 120.0

    def test_started_at_on_app_state(self):
        assert app.state.started_at.tzinfo is not None


class TestMiddleware:

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
