"""
Tests for the route search HTTP endpoints.

The module-level router is swapped for one built over in-memory data.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.routes_api import app
from src.route_composer.ports.graph_repository import GraphNotInitializedError

DAILY = "1,2,3,4,5,6,7"

NETWORK = [
    ("b1", "loc-taksim", "loc-ist", "BUS", DAILY),
    ("f1", "loc-ist", "loc-lhr", "FLIGHT", "1,3,5"),
    ("u1", "loc-lhr", "loc-wembley", "UBER", DAILY),
]


@pytest.fixture
def client(make_router):
    router = make_router(NETWORK)
    with patch("src.api.routes_api.router", router):
        yield TestClient(app)


# =============================================================================
# SEARCH
# =============================================================================


class TestSearchEndpoint:
    """Tests for GET /api/routes/search."""

    def test_returns_routes(self, client):
        response = client.get(
            "/api/routes/search",
            params={
                "origin_id": "loc-taksim",
                "destination_id": "loc-wembley",
                "date": "2025-11-28",
            },
        )

        assert response.status_code == 200
        routes = response.json()
        assert len(routes) == 1
        route = routes[0]
        assert route["total_segments"] == 3
        assert route["has_before_flight_transfer"] is True
        assert route["has_after_flight_transfer"] is True
        assert [s["segment_order"] for s in route["segments"]] == [1, 2, 3]
        assert [s["transportation_type"] for s in route["segments"]] == [
            "BUS",
            "FLIGHT",
            "UBER",
        ]
        assert route["segments"][0]["origin_location"]["location_code"] == "TAKSIM"
        assert route["segments"][1]["transportation_id"] == "f1"

    def test_no_routes_is_empty_list(self, client):
        response = client.get(
            "/api/routes/search",
            params={
                "origin_id": "loc-taksim",
                "destination_id": "loc-wembley",
                "date": "2025-11-29",
            },
        )

        assert response.status_code == 200
        assert response.json() == []

    def test_unknown_location_is_404(self, client):
        response = client.get(
            "/api/routes/search",
            params={
                "origin_id": "loc-nowhere",
                "destination_id": "loc-wembley",
                "date": "2025-11-28",
            },
        )

        assert response.status_code == 404
        assert "loc-nowhere" in response.json()["detail"]

    def test_malformed_date_is_422(self, client):
        response = client.get(
            "/api/routes/search",
            params={
                "origin_id": "loc-taksim",
                "destination_id": "loc-wembley",
                "date": "28/11/2025",
            },
        )

        assert response.status_code == 422

    def test_missing_date_is_422(self, client):
        response = client.get(
            "/api/routes/search",
            params={"origin_id": "loc-taksim", "destination_id": "loc-wembley"},
        )

        assert response.status_code == 422

    def test_unavailable_data_is_503(self):
        failing = MagicMock()
        failing.search.side_effect = GraphNotInitializedError("database is down")

        with patch("src.api.routes_api.router", failing):
            response = TestClient(app).get(
                "/api/routes/search",
                params={
                    "origin_id": "loc-ist",
                    "destination_id": "loc-lhr",
                    "date": "2025-11-28",
                },
            )

        assert response.status_code == 503
        assert response.json() == {"detail": "Route data unavailable"}


# =============================================================================
# LOCATIONS
# =============================================================================


class TestLocationEndpoints:
    """Tests for GET /api/locations and /api/locations/{id}."""

    def test_lists_locations_in_display_order(self, client):
        response = client.get("/api/locations")

        assert response.status_code == 200
        codes = [loc["location_code"] for loc in response.json()]
        assert codes[:2] == ["IST", "SAW"]
        assert codes[-1] == "TAXI_START"

    def test_get_location(self, client):
        response = client.get("/api/locations/loc-lhr")

        assert response.status_code == 200
        assert response.json()["display_order"] == 4

    def test_get_unknown_location_is_404(self, client):
        response = client.get("/api/locations/loc-nowhere")

        assert response.status_code == 404
