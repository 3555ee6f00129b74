from salon_booking.domain.bookings.repository import BookingRepository
from salon_booking.models import AppointmentRequest, Customer, RequestTimePreference

from .conftest import future


def count_rows(database, model) -> int:
    with database.session() as db:
        return db.query(model).count()


def test_submit_creates_pending_request(client, booking_payload):
    response = client.post("/api/requests", json=booking_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Booking request submitted successfully"
    data = body["data"]
    assert data["status"] == "pending"
    assert data["customer"]["email"] == "jane@example.com"
    assert data["service"]["name"] == "Cut & Blow Dry"
    assert [p["priority"] for p in data["preferred_times"]] == [1, 2]
    assert not any(p["is_selected"] for p in data["preferred_times"])


def test_preferences_are_stored_in_priority_order(submit_booking):
    second, first = future(days=5), future(days=6)

    data = submit_booking(
        preferred_times=[
            {"datetime": first.isoformat(), "priority": 2},
            {"datetime": second.isoformat(), "priority": 1},
            {"datetime": future(days=7).isoformat(), "priority": 3},
        ]
    )

    times = data["preferred_times"]
    assert [p["priority"] for p in times] == [1, 2, 3]
    assert times[0]["preferred_datetime"] == second.isoformat()
    assert times[1]["preferred_datetime"] == first.isoformat()


def test_get_request_round_trip(client, submit_booking):
    created = submit_booking()

    response = client.get(f"/api/requests/{created['request_id']}")

    assert response.status_code == 200
    fetched = response.json()["data"]
    assert fetched["customer"] == created["customer"]
    assert fetched["service"] == created["service"]
    assert fetched["preferred_times"] == created["preferred_times"]
    assert fetched["notes"] == "First visit"


def test_timezone_aware_times_are_stored_as_utc(submit_booking):
    data = submit_booking(
        preferred_times=[{"datetime": "2099-06-01T10:00:00+02:00", "priority": 1}]
    )

    assert data["preferred_times"][0]["preferred_datetime"] == "2099-06-01T08:00:00"


def test_returning_customer_is_updated_not_duplicated(database, submit_booking):
    submit_booking()
    submit_booking(
        customer={"name": "Jane Smith", "email": "JANE@example.com", "phone": "+44 7700 900999"}
    )

    with database.session() as db:
        customers = db.query(Customer).all()
        assert len(customers) == 1
        assert customers[0].name == "Jane Smith"
        assert customers[0].phone == "+44 7700 900999"
        assert db.query(AppointmentRequest).count() == 2


def test_unknown_service_writes_nothing(client, database, booking_payload):
    response = client.post("/api/requests", json=booking_payload(service_id=9999))

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_SERVICE"
    assert count_rows(database, Customer) == 0
    assert count_rows(database, AppointmentRequest) == 0
    assert count_rows(database, RequestTimePreference) == 0


def test_inactive_service_is_rejected(client, make_service, booking_payload):
    inactive_id = make_service(name="Retired Perm", is_active=False)

    response = client.post("/api/requests", json=booking_payload(service_id=inactive_id))

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_SERVICE"


def test_failure_mid_transaction_rolls_back(client, database, booking_payload, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(BookingRepository, "add_preference", staticmethod(boom))

    response = client.post("/api/requests", json=booking_payload())

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to create booking request"
    assert count_rows(database, Customer) == 0
    assert count_rows(database, AppointmentRequest) == 0


def assert_validation_error(response):
    assert response.status_code == 400, response.text
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"]


def test_requires_at_least_one_preferred_time(client, booking_payload):
    assert_validation_error(client.post("/api/requests", json=booking_payload(preferred_times=[])))


def test_rejects_more_than_three_preferred_times(client, booking_payload):
    times = [{"datetime": future(days=d).isoformat(), "priority": 1 + d % 3} for d in range(1, 5)]
    assert_validation_error(
        client.post("/api/requests", json=booking_payload(preferred_times=times))
    )


def test_rejects_past_preferred_time(client, booking_payload):
    times = [{"datetime": "2020-01-01T10:00:00", "priority": 1}]
    response = client.post("/api/requests", json=booking_payload(preferred_times=times))

    assert_validation_error(response)
    assert "future" in str(response.json()["errors"])


def test_rejects_duplicate_priorities(client, booking_payload):
    times = [
        {"datetime": future(days=2).isoformat(), "priority": 1},
        {"datetime": future(days=3).isoformat(), "priority": 1},
    ]
    assert_validation_error(
        client.post("/api/requests", json=booking_payload(preferred_times=times))
    )


def test_rejects_priority_out_of_range(client, booking_payload):
    times = [{"datetime": future().isoformat(), "priority": 4}]
    assert_validation_error(
        client.post("/api/requests", json=booking_payload(preferred_times=times))
    )


def test_rejects_bad_customer_details(client, booking_payload):
    bad_customers = [
        {"name": "J", "email": "jane@example.com", "phone": "07700 900123"},
        {"name": "Jane", "email": "not-an-email", "phone": "07700 900123"},
        {"name": "Jane", "email": "jane@example.com", "phone": "12345"},
        {"name": "Jane", "email": "jane@example.com", "phone": "0770-CALL-ME-NOW"},
    ]
    for customer in bad_customers:
        assert_validation_error(
            client.post("/api/requests", json=booking_payload(customer=customer))
        )


def test_rejects_long_notes(client, booking_payload):
    assert_validation_error(client.post("/api/requests", json=booking_payload(notes="x" * 1001)))


def test_notes_are_escaped(submit_booking):
    data = submit_booking(notes="<script>alert(1)</script>")

    assert data["notes"] == "&lt;script&gt;alert(1)&lt;/script&gt;"


def test_get_unknown_request(client):
    response = client.get("/api/requests/4242")

    assert response.status_code == 404
    assert response.json()["code"] == "REQUEST_NOT_FOUND"


def test_get_request_with_non_numeric_id(client):
    assert_validation_error(client.get("/api/requests/abc"))
