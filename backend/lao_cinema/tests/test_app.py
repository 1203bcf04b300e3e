"""
Tests for application assembly in main.py.
"""

from fastapi.testclient import TestClient

from main import create_app


def test_health_and_cors():
    client = TestClient(create_app())

    response = client.get("/health", headers={"Origin": "http://localhost:3000"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_routes_registered():
    paths = {route.path for route in create_app().routes}

    assert {
        "/api/video-tokens",
        "/api/video-tokens/validate",
        "/api/rentals",
        "/api/rentals/{movie_id}",
        "/api/rentals/packs/{pack_id}",
        "/api/movies/{movie_id}/pricing",
        "/api/promo-codes/validate",
        "/api/purchases",
        "/api/payment-providers",
    } <= paths
