import os

os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from salon_booking.database import Database  # noqa: E402
from salon_booking.domain.auth.service import DEFAULT_EXPIRY, token_claims  # noqa: E402
from salon_booking.main import create_app  # noqa: E402
from salon_booking.models import ROLE_ADMIN, AdminUser, Service, utcnow  # noqa: E402
from salon_booking.rate_limiter import RateLimiter  # noqa: E402
from salon_booking.security_utils import create_access_token, hash_password  # noqa: E402

ADMIN_PASSWORD = "Salon-Pass-2024!"


def future(days: int = 3, hour: int = 10) -> datetime:
    """A naive UTC datetime some days ahead, on the hour"""
    when = datetime.now(timezone.utc) + timedelta(days=days)
    return when.replace(hour=hour, minute=0, second=0, microsecond=0, tzinfo=None)


@pytest.fixture
def database():
    db = Database("sqlite:///:memory:", log_slow_queries=False)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def app(database):
    return create_app(database=database, rate_limiter=RateLimiter(None, enabled=False))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_service(database):
    def _make_service(**overrides) -> int:
        values = {
            "name": "Cut & Blow Dry",
            "description": "Wash, cut and finish",
            "duration_minutes": 60,
            "price": Decimal("45.00"),
            "max_concurrent": 1,
            "is_active": True,
        }
        values.update(overrides)
        with database.session() as db:
            service = Service(**values)
            db.add(service)
            db.commit()
            return service.id

    return _make_service


@pytest.fixture
def service_id(make_service):
    return make_service()


@pytest.fixture
def make_admin(database):
    def _make_admin(
        email: str = "rhi@hairbyrhi.com",
        password: str = ADMIN_PASSWORD,
        role: str = ROLE_ADMIN,
        first_name: str = "Rhi",
        last_name: str = "Admin",
        **overrides,
    ) -> int:
        with database.session() as db:
            values = {
                "email": email,
                "password_hash": hash_password(password),
                "first_name": first_name,
                "last_name": last_name,
                "role": role,
                "is_active": True,
                "failed_login_attempts": 0,
                "password_changed_at": utcnow(),
            }
            values.update(overrides)
            user = AdminUser(**values)
            db.add(user)
            db.commit()
            return user.id

    return _make_admin


@pytest.fixture
def token_for(database):
    def _token_for(user_id: int, expires_delta: timedelta = DEFAULT_EXPIRY) -> str:
        with database.session() as db:
            user = db.get(AdminUser, user_id)
            return create_access_token(token_claims(user), expires_delta)

    return _token_for


@pytest.fixture
def admin_headers(make_admin, token_for):
    admin_id = make_admin()
    return {"Authorization": f"Bearer {token_for(admin_id)}"}


@pytest.fixture
def booking_payload(service_id):
    def _payload(**overrides) -> dict:
        payload = {
            "customer": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "phone": "07700 900123",
            },
            "service_id": service_id,
            "preferred_times": [
                {"datetime": future(days=3).isoformat(), "priority": 1},
                {"datetime": future(days=4).isoformat(), "priority": 2},
            ],
            "notes": "First visit",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def submit_booking(client, booking_payload):
    def _submit(**overrides) -> dict:
        response = client.post("/api/requests", json=booking_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _submit
