import pytest

from conftest import auth
from festreg.models.order_model import Order, RegistrationMember


@pytest.fixture
def placed_order(client, make_user, make_event):
    """A PENDING order ORD000001 by Alice for a two-person event."""
    leader, member = make_user("Alice", "A"), make_user("Bob", "B")
    event = make_event("Circuit Debug", venue="Lab 3", links=[{"name": "Rulebook", "link": "https://x.test/r"}])
    body = {"registrations": [{"eventId": event.id, "teamMembers": [leader.id, member.id]}], "transactionId": "TXN123"}
    response = client.post("/api/orders", json=body, headers=auth(leader))
    assert response.status_code == 201
    return {"leader": leader, "member": member, "event": event, "order_id": response.json()["data"]["orderId"]}


def test_admin_routes_require_admin(client, placed_order):
    response = client.put("/api/admin/orders/ORD000001/verify", headers=auth(placed_order["leader"]))
    assert response.status_code == 403
    assert response.json()["code"] == "NOT_AUTHORIZED"


def test_verify_then_verify_again(client, admin, placed_order, db_session, sent_emails):
    response = client.put("/api/admin/orders/ORD000001/verify", headers=auth(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["orderId"] == "ORD000001"
    assert data["status"] == "VERIFIED"
    assert data["verifiedAt"] is not None

    kind, kwargs = sent_emails[-1]
    assert kind == "verified"
    assert kwargs["events"] == [
        {"name": "Circuit Debug", "venue": "Lab 3", "links": [{"name": "Rulebook", "link": "https://x.test/r"}]}
    ]

    response = client.put("/api/admin/orders/ORD000001/verify", headers=auth(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "Order is already verified"
    assert len([e for e in sent_emails if e[0] == "verified"]) == 1


def test_cannot_reject_verified_order(client, admin, placed_order, db_session):
    client.put("/api/admin/orders/ORD000001/verify", headers=auth(admin))

    response = client.put("/api/admin/orders/ORD000001/reject", json={"reason": "bad"}, headers=auth(admin))

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot reject a verified order"
    db_session.expire_all()
    order = db_session.query(Order).filter(Order.order_id == "ORD000001").one()
    assert order.status == "VERIFIED"
    assert order.rejection_reason is None


def test_reject_requires_reason(client, admin, placed_order):
    response = client.put("/api/admin/orders/ORD000001/reject", json={"reason": "   "}, headers=auth(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "Rejection reason is required"

    response = client.put("/api/admin/orders/ORD000001/reject", headers=auth(admin))
    assert response.json()["error"] == "Rejection reason is required"


def test_reject_frees_seats_and_sends_email(client, admin, placed_order, make_user, db_session, sent_emails):
    response = client.put(
        "/api/admin/orders/ORD000001/reject", json={"reason": "  Payment not received  "}, headers=auth(admin)
    )

    assert response.status_code == 200
    assert response.json()["data"] == {
        "orderId": "ORD000001",
        "status": "REJECTED",
        "rejectionReason": "Payment not received",
    }
    kind, kwargs = sent_emails[-1]
    assert kind == "rejected"
    assert kwargs["reason"] == "Payment not received"
    assert kwargs["transaction_id"] == "TXN123"

    db_session.expire_all()
    assert all(not m.active for m in db_session.query(RegistrationMember).all())

    # Bob can register again with someone else
    bob, carl = placed_order["member"], make_user()
    body = {"registrations": [{"eventId": placed_order["event"].id, "teamMembers": [bob.id, carl.id]}],
            "transactionId": "TXN456"}
    response = client.post("/api/orders", json=body, headers=auth(bob))
    assert response.status_code == 201


def test_rejected_order_can_be_verified(client, admin, placed_order):
    client.put("/api/admin/orders/ORD000001/reject", json={"reason": "unclear"}, headers=auth(admin))

    response = client.put("/api/admin/orders/ORD000001/verify", headers=auth(admin))

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "VERIFIED"
    detail = client.get("/api/admin/orders/ORD000001", headers=auth(admin)).json()["data"]
    assert detail["rejectionReason"] is None


def test_reverify_blocked_when_seat_taken(client, admin, placed_order, make_user):
    client.put("/api/admin/orders/ORD000001/reject", json={"reason": "unclear"}, headers=auth(admin))
    bob, carl = placed_order["member"], make_user()
    body = {"registrations": [{"eventId": placed_order["event"].id, "teamMembers": [bob.id, carl.id]}],
            "transactionId": "TXN456"}
    client.post("/api/orders", json=body, headers=auth(bob))

    response = client.put("/api/admin/orders/ORD000001/verify", headers=auth(admin))

    assert response.status_code == 400
    assert "already registered" in response.json()["error"]
    detail = client.get("/api/admin/orders/ORD000001", headers=auth(admin)).json()["data"]
    assert detail["status"] == "REJECTED"


def test_unknown_order(client, admin):
    response = client.put("/api/admin/orders/ORD424242/verify", headers=auth(admin))
    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


def test_list_orders_with_filters(client, admin, placed_order, make_user, make_event):
    solo = make_event(team_min=1, team_max=1)
    other = make_user()
    client.post(
        "/api/orders",
        json={"registrations": [{"eventId": solo.id, "teamMembers": [other.id]}], "transactionId": "TXN9"},
        headers=auth(other),
    )
    client.put("/api/admin/orders/ORD000001/verify", headers=auth(admin))

    data = client.get("/api/admin/orders", headers=auth(admin)).json()["data"]
    assert data["count"] == 2
    assert data["summary"]["verified"] == 1
    assert data["summary"]["pending"] == 1
    assert data["summary"]["totalRevenue"] == 300

    data = client.get("/api/admin/orders?status=PENDING", headers=auth(admin)).json()["data"]
    assert [o["orderId"] for o in data["orders"]] == ["ORD000002"]

    data = client.get(f"/api/admin/orders?event_id={solo.id}", headers=auth(admin)).json()["data"]
    assert data["count"] == 1

    response = client.get("/api/admin/orders?status=LOST", headers=auth(admin))
    assert response.status_code == 400


def test_order_by_numeric_id(client, admin, placed_order, db_session):
    pk = db_session.query(Order.id).filter(Order.order_id == "ORD000001").scalar()
    data = client.get(f"/api/admin/orders/{pk}", headers=auth(admin)).json()["data"]
    assert data["orderId"] == "ORD000001"
    assert data["teamLeader"]["college"] == ""


def change_status_after_read(monkeypatch, db_session, **values):
    """Commit a competing status change between the admin's read and the UPDATE."""
    from sqlalchemy import update

    from festreg.controller import admin_order_controller

    real_next_status = admin_order_controller.next_status
    calls = []

    def next_status(current, action):
        calls.append(current)
        target = real_next_status(current, action)
        if len(calls) == 1:
            db_session.execute(update(Order).where(Order.order_id == "ORD000001").values(**values))
            db_session.commit()
        return target

    monkeypatch.setattr(admin_order_controller, "next_status", next_status)
    return calls


def test_reject_loses_race_to_verify(client, admin, placed_order, db_session, monkeypatch, sent_emails):
    calls = change_status_after_read(monkeypatch, db_session, status="VERIFIED")

    response = client.put("/api/admin/orders/ORD000001/reject", json={"reason": "late"}, headers=auth(admin))

    assert response.status_code == 400
    assert response.json()["code"] == "CONFLICT"
    assert response.json()["error"] == "Cannot reject a verified order"
    assert calls == ["PENDING", "VERIFIED"]
    db_session.expire_all()
    order = db_session.query(Order).filter(Order.order_id == "ORD000001").one()
    assert order.status == "VERIFIED"
    assert order.rejection_reason is None
    assert all(m.active for m in db_session.query(RegistrationMember).all())
    assert not [e for e in sent_emails if e[0] == "rejected"]


def test_concurrent_rejects_only_one_wins(client, admin, placed_order, db_session, monkeypatch, sent_emails):
    change_status_after_read(monkeypatch, db_session, status="REJECTED", rejection_reason="first")

    response = client.put("/api/admin/orders/ORD000001/reject", json={"reason": "second"}, headers=auth(admin))

    assert response.status_code == 400
    assert response.json()["error"] == "Order was modified by another request, please retry"
    db_session.expire_all()
    order = db_session.query(Order).filter(Order.order_id == "ORD000001").one()
    assert order.status == "REJECTED"
    assert order.rejection_reason == "first"
    assert not [e for e in sent_emails if e[0] == "rejected"]
