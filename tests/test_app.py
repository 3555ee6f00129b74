from fastapi.testclient import TestClient

from salon_booking.database import Database
from salon_booking.main import create_app
from salon_booking.rate_limiter import RateLimiter


def test_health_reports_database(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["database"] == "connected"
    assert body["timestamp"]


def test_health_without_database_connection():
    broken = Database("sqlite:////nonexistent-dir/salon.db", log_slow_queries=False)
    app = create_app(database=broken, rate_limiter=RateLimiter(None, enabled=False))

    # Lifespan is skipped so start-up does not try to create tables
    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json()["database"] == "disconnected"


def test_security_headers(client):
    response = client.get("/api/services")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "no-store" in response.headers["Cache-Control"]


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "message": "Cannot GET /api/nowhere",
        "code": "NOT_FOUND",
    }


def test_export_requires_admin(client):
    response = client.get("/api/export")

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_REQUIRED"


def test_export_dumps_booking_tables(client, admin_headers, submit_booking):
    booking = submit_booking()

    response = client.get("/api/export", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert [r["id"] for r in data["appointment_requests"]] == [booking["request_id"]]
    assert [p["priority"] for p in data["request_time_preferences"]] == [1, 2]
    assert data["customers"][0]["email"] == "jane@example.com"
    assert data["appointments"] == []
    assert len(data["services"]) == 1
    assert data["database_info"] == {"dialect": "sqlite"}
    assert data["exported_at"]
