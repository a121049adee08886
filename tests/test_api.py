"""
HTTP tests for the booking API.
"""

import sqlite3
import threading
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from garagebook.database import engine
from garagebook.domain.appointments.router import get_notification_scheduler
from garagebook.domain.appointments.service import AppointmentService
from garagebook.main import app
from garagebook.shared.errors import TransientStoreError


def future(hour, minute=0, days=2):
    day = datetime.now(timezone.utc) + timedelta(days=days)
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0).isoformat()


@pytest.fixture
def client(scheduler):
    app.dependency_overrides[get_notification_scheduler] = lambda: scheduler
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def book(client, staff_id, start, phone="0612345678", minutes=60):
    return client.post(
        "/appointments",
        json={
            "customerPhone": phone,
            "customerName": "Paul",
            "assignedStaffId": staff_id,
            "carBrand": "Peugeot",
            "carModel": "308",
            "startTime": start,
            "durationMinutes": minutes,
        },
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_public_request_then_confirm(client, service_id, staff_id, dispatcher):
    response = client.post(
        "/appointments/requests",
        json={
            "customerPhone": "06 12 34 56 78",
            "customerName": "Paul",
            "serviceId": service_id,
            "carBrand": "Peugeot",
            "startTime": future(9),
        },
    )
    assert response.status_code == 201
    requested = response.json()
    assert requested["status"] == "REQUESTED"
    assert requested["durationMinutes"] == 120
    assert requested["price"] == "149.00"
    assert requested["customer"]["phone"] == "+33612345678"
    assert dispatcher.events == []

    pending = client.get("/appointments/pending").json()
    assert [a["id"] for a in pending] == [requested["id"]]

    response = client.post(
        f"/appointments/{requested['id']}/confirm",
        json={"assignedStaffId": staff_id, "durationMinutes": 90},
    )
    assert response.status_code == 200
    confirmed = response.json()
    assert confirmed["status"] == "CONFIRMED"
    assert confirmed["staffId"] == staff_id
    assert confirmed["durationMinutes"] == 90
    assert dispatcher.types() == ["CONFIRM"]

    assert client.get("/appointments/pending").json() == []


def test_overlap_returns_409_with_conflicting_appointment(client, staff_id):
    first = book(client, staff_id, future(10)).json()

    response = book(client, staff_id, future(10, 30), phone="0698765432")

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "appointment_overlap"
    assert body["details"]["conflictingAppointmentId"] == first["id"]


def test_cancel_with_and_without_body(client, staff_id, dispatcher):
    first = book(client, staff_id, future(10)).json()
    second = book(client, staff_id, future(14)).json()

    canceled = client.post(f"/appointments/{first['id']}/cancel", json={"reason": " sick "})
    assert canceled.status_code == 200
    assert canceled.json()["status"] == "CANCELED"
    assert canceled.json()["cancelReason"] == "sick"

    assert client.post(f"/appointments/{second['id']}/cancel").json()["status"] == "CANCELED"
    assert dispatcher.types() == ["CONFIRM", "CONFIRM", "CANCEL", "CANCEL"]


def test_unknown_appointment_is_404(client):
    response = client.get("/appointments/9999")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_premature_no_show_is_409(client, staff_id):
    appt = book(client, staff_id, future(10)).json()

    response = client.post(f"/appointments/{appt['id']}/no-show")

    assert response.status_code == 409
    assert response.json()["code"] == "premature_noshow"


def test_invalid_transition_is_409(client, staff_id):
    appt = book(client, staff_id, future(10)).json()
    client.post(f"/appointments/{appt['id']}/cancel")

    response = client.post(f"/appointments/{appt['id']}/start")

    assert response.status_code == 409
    assert response.json()["details"] == {"currentStatus": "CANCELED", "targetStatus": "IN_PROGRESS"}


def test_business_validation_is_400(client, staff_id):
    response = book(client, staff_id, future(10), minutes=5)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_malformed_body_is_422(client):
    response = client.post("/appointments", json={"customerPhone": "0612345678"})

    assert response.status_code == 422
    assert response.json()["code"] == "request_validation_error"


def test_list_between_and_reschedule(client, staff_id, dispatcher):
    appt = book(client, staff_id, future(10)).json()

    response = client.post(
        f"/appointments/{appt['id']}/reschedule", json={"newStartTime": future(15)}
    )
    assert response.status_code == 200
    assert response.json()["durationMinutes"] == 60

    listed = client.get(
        "/appointments", params={"start": future(0), "end": future(23, 59)}
    ).json()
    assert [(a["id"], a["status"]) for a in listed] == [(appt["id"], "CONFIRMED")]
    assert dispatcher.types() == ["CONFIRM", "UPDATE"]


def test_customer_history_and_deactivation(client, staff_id):
    appt = book(client, staff_id, future(10)).json()
    customer_id = appt["customer"]["id"]

    history = client.get(f"/customers/{customer_id}/history").json()
    assert [a["id"] for a in history["appointments"]] == [appt["id"]]
    assert history["completedCount"] == 0

    deactivated = client.post(f"/customers/{customer_id}/deactivate").json()
    assert deactivated["active"] is False
    assert client.get(f"/appointments/customer/{customer_id}").status_code == 200

    # Booking again with the same phone brings the customer back
    book(client, staff_id, future(16))
    assert client.get(f"/customers/{customer_id}").json()["active"] is True


def test_catalog_and_staff_endpoints(client, staff_id):
    created = client.post(
        "/services",
        json={"name": "Wax", "minMinutes": 30, "defaultMinutes": 45, "maxMinutes": 60},
    )
    assert created.status_code == 201
    assert [s["name"] for s in client.get("/services").json()] == ["Wax"]

    staff = client.get("/staff").json()
    assert [s["username"] for s in staff] == ["mike"]

    response = client.patch(f"/staff/{staff_id}/active", json={"active": False, "version": 1})
    assert response.json()["active"] is False
    assert client.get("/staff").json() == []


def test_transient_errors_ask_clients_to_retry(client):
    with patch.object(AppointmentService, "get_by_id", side_effect=TransientStoreError("busy")):
        response = client.get("/appointments/1")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert response.json()["code"] == "transient_store_error"


def test_health_answers_while_a_booking_waits_on_the_lock(client, staff_id):
    outside = sqlite3.connect(engine.url.database, isolation_level=None)
    outside.execute("BEGIN IMMEDIATE")
    result = {}

    def booking():
        result["response"] = book(client, staff_id, future(10))

    worker = threading.Thread(target=booking)
    try:
        worker.start()
        time.sleep(0.3)

        started = time.monotonic()
        assert client.get("/health").status_code == 200
        assert time.monotonic() - started < 0.5
        assert worker.is_alive()
    finally:
        outside.execute("ROLLBACK")
        outside.close()
        worker.join(timeout=10)

    assert result["response"].status_code == 201
