import json
from datetime import date

from sqlalchemy.orm import Session

from conftest import at
from parking_server.config import settings
from parking_server.models import ReservationStatus


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json()["status"] == "healthy"


def test_reconcile_expiry(client, clock, make_reservation):
    r = make_reservation(amount=100)
    clock.advance(minutes=16)

    response = client.post("/reconcile/expiry")

    assert response.status_code == 200
    body = response.json()
    assert body["reservations_expired"] == 1
    assert body["fines_applied"] == 1
    assert body["notifications_sent"] == 1
    assert body["errors"] == []

    pending = client.get("/fines/pending", params={"user_id": r.user_id}).json()
    assert pending["total"] == 50
    assert pending["fines"][0]["reason"] == "no_show"


def test_reconcile_partial_failure_is_still_200(client, clock, make_reservation):
    make_reservation(user_id=777)
    clock.advance(minutes=20)

    response = client.post("/reconcile/expiry")

    assert response.status_code == 200
    assert len(response.json()["errors"]) == 1


def test_reconcile_batch_failure_is_500(client, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(Session, "query", broken)

    response = client.post("/reconcile/overstay")

    assert response.status_code == 500
    assert response.json() == {"error": "connection reset"}


def test_reconcile_requires_cron_secret_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

    assert client.post("/reconcile/expiry").status_code == 401
    assert client.post(
        "/reconcile/expiry", headers={"X-Cron-Secret": "wrong"}).status_code == 401
    assert client.post(
        "/reconcile/expiry", headers={"X-Cron-Secret": "s3cret"}).status_code == 200


def test_reconcile_overstay(client, clock, make_reservation):
    make_reservation(status=ReservationStatus.checked_in, checked_in_at=at(9, 5))
    clock.moment = at(10, 12)

    body = client.post("/reconcile/overstay").json()

    assert body["fines_created"] == 1
    assert body["overstay_alerts_created"] == 1
    assert body["notifications_sent"] == 1


def test_check_in_and_out_flow(client, clock, make_reservation, lot):
    r = make_reservation()
    clock.moment = at(9, 4)

    response = client.post(f"/attendant/check-in/{r.id}")
    assert response.status_code == 200
    assert response.json()["status"] == "checked_in"

    clock.moment = at(10, 30)
    client.post("/reconcile/overstay")

    response = client.post(
        "/attendant/check-out/by-vehicle",
        json={"lot_id": lot.id, "vehicle_number": r.vehicle_number},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["reservation"]["status"] == "completed"
    assert body["overstay_alerts_cleared"] == 1

    assert client.get(f"/attendant/reservations/{r.id}").json()["status"] == "completed"


def test_check_in_by_scan(client, make_reservation):
    r = make_reservation()

    response = client.post(
        "/attendant/check-in/scan", json={"payload": json.dumps({"id": r.id})})
    assert response.status_code == 200

    response = client.post("/attendant/check-in/scan", json={"payload": "garbage"})
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "invalid_qr"


def test_rejection_status_codes(client, make_reservation):
    tomorrow = make_reservation(reservation_date=date(2026, 10, 19))
    confirmed = make_reservation()

    response = client.post("/attendant/check-in/999")
    assert response.status_code == 404
    assert response.json()["detail"]["reason"] == "not_found"

    response = client.post(f"/attendant/check-in/{tomorrow.id}")
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "wrong_date"

    response = client.post(f"/attendant/check-out/{confirmed.id}")
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "invalid_status"

    assert client.get("/attendant/reservations/999").status_code == 404


def test_cancel_route(client, dispatcher, make_reservation):
    r = make_reservation()

    response = client.post(f"/attendant/reservations/{r.id}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = client.post(f"/attendant/reservations/{r.id}/cancel")
    assert response.status_code == 400

    notifications = client.get(f"/notifications/by-reservation/{r.id}").json()
    assert [n["notification_type"] for n in notifications] == ["reservation_cancelled"]
    assert len(dispatcher.sent) == 1


def test_fine_routes(client, clock, make_reservation):
    r = make_reservation(amount=80)
    clock.moment = at(9, 30)
    client.post("/reconcile/expiry")

    fine = client.get("/fines/pending", params={"user_id": r.user_id}).json()["fines"][0]
    assert fine["amount"] == 40

    response = client.post(f"/fines/{fine['id']}/adjust", json={"amount": -5})
    assert response.status_code == 422

    response = client.post(f"/fines/{fine['id']}/adjust", json={"amount": 25, "notes": "reduced"})
    assert response.status_code == 200
    assert response.json()["amount"] == 25

    response = client.post(f"/fines/{fine['id']}/resolve", json={"transaction_id": "txn_9"})
    assert response.status_code == 200
    assert response.json()["status"] == "resolved"

    response = client.post(f"/fines/{fine['id']}/waive", json={})
    assert response.status_code == 409

    assert client.post("/fines/999/waive", json={}).status_code == 404
    assert client.get("/fines/pending", params={"user_id": r.user_id}).json()["total"] == 0
