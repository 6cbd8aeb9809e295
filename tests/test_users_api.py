from conftest import auth
from festreg.models.user_model import User

WEBHOOK_HEADERS = {"x-webhook-secret": "test-webhook-secret"}


def identity_event(kind, clerk_id="clerk_abc", email="Priya@Example.com", status="verified", **metadata):
    return {
        "type": kind,
        "data": {
            "id": clerk_id,
            "email_addresses": [{"email_address": email, "verification": {"status": status}}],
            "first_name": "Priya",
            "last_name": "Nair",
            "unsafe_metadata": metadata,
        },
    }


# ----------------------- WEBHOOK -----------------------

def test_webhook_requires_secret(client):
    response = client.post("/webhooks/identity", json=identity_event("user.created"))
    assert response.status_code == 401

    response = client.post(
        "/webhooks/identity", json=identity_event("user.created"), headers={"x-webhook-secret": "wrong"}
    )
    assert response.status_code == 401


def test_webhook_user_lifecycle(client, db_session):
    response = client.post(
        "/webhooks/identity",
        json=identity_event("user.created", college="NIT", year="2nd", phoneNumber="9876543210"),
        headers=WEBHOOK_HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    user = db_session.query(User).filter(User.clerk_id == "clerk_abc").one()
    assert user.email == "priya@example.com"
    assert user.college == "NIT"
    assert user.phone_number == "9876543210"
    assert user.is_admin is False

    client.post("/webhooks/identity", json=identity_event("user.updated", branch="ECE"), headers=WEBHOOK_HEADERS)
    db_session.expire_all()
    user = db_session.query(User).filter(User.clerk_id == "clerk_abc").one()
    assert user.branch == "ECE"
    assert user.college == ""

    client.post("/webhooks/identity", json={"type": "user.deleted", "data": {"id": "clerk_abc"}},
                headers=WEBHOOK_HEADERS)
    db_session.expire_all()
    assert db_session.query(User).filter(User.clerk_id == "clerk_abc").first() is None


def test_webhook_needs_verified_email(client):
    response = client.post(
        "/webhooks/identity", json=identity_event("user.created", status="unverified"), headers=WEBHOOK_HEADERS
    )
    assert response.status_code == 400
    assert response.json()["error"] == "No verified email"


def test_user_in_an_order_is_not_deleted(client, make_user, make_event, db_session):
    a = make_user(clerk_id="clerk_lead")
    event = make_event(team_min=1, team_max=1)
    client.post(
        "/api/orders",
        json={"registrations": [{"eventId": event.id, "teamMembers": [a.id]}], "transactionId": "T1"},
        headers=auth(a),
    )

    response = client.post(
        "/webhooks/identity", json={"type": "user.deleted", "data": {"id": "clerk_lead"}}, headers=WEBHOOK_HEADERS
    )

    assert response.status_code == 400
    assert db_session.query(User).filter(User.clerk_id == "clerk_lead").first() is not None


# ----------------------- PROFILE -----------------------

def test_get_profile(client, make_user, make_event):
    a, b = make_user("Alice", "A"), make_user("Bob", "B")
    event = make_event(team_min=2, team_max=2)
    client.post(
        "/api/orders",
        json={"registrations": [{"eventId": event.id, "teamMembers": [a.id, b.id]}], "transactionId": "T1"},
        headers=auth(a),
    )

    data = client.get("/api/profile", headers=auth(b)).json()["data"]

    assert data["user"]["firstName"] == "Bob"
    assert data["statistics"]["totalOrders"] == 1
    assert data["statistics"]["asMember"] == 1
    assert data["statistics"]["pendingOrders"] == 1
    assert data["statistics"]["totalEventsRegistered"] == 1
    assert data["registrations"]["asMember"][0]["teamLeader"]["firstName"] == "Alice"


def test_update_profile(client, make_user):
    a = make_user()

    response = client.put(
        "/api/profile",
        json={"firstName": "  Meera ", "college": " IIT ", "year": "3rd", "phoneNumber": "9123456780"},
        headers=auth(a),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["firstName"] == "Meera"
    assert data["college"] == "IIT"
    assert data["year"] == "3rd"


def test_update_profile_validation(client, make_user):
    a = make_user()

    response = client.put("/api/profile", json={}, headers=auth(a))
    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"

    response = client.put("/api/profile", json={"firstName": "  "}, headers=auth(a))
    assert response.json()["error"] == "First name is required"

    response = client.put("/api/profile", json={"year": "5th"}, headers=auth(a))
    assert response.json()["error"] == "Year must be one of: 1st, 2nd, 3rd, 4th, Graduate, Other"

    response = client.put("/api/profile", json={"phoneNumber": "12345"}, headers=auth(a))
    assert response.status_code == 400
    assert response.json()["error"] == "Phone number must be exactly 10 digits"


def test_search_user_by_email(client, make_user):
    a = make_user()
    b = make_user("Bob", "B", email="bob@example.com")

    response = client.post("/api/users/search", json={"email": " BOB@example.com "}, headers=auth(a))
    assert response.status_code == 200
    assert response.json()["data"] == {"id": b.id, "firstName": "Bob", "lastName": "B", "email": "bob@example.com"}

    response = client.post("/api/users/search", json={"email": "ghost@example.com"}, headers=auth(a))
    assert response.status_code == 404
    assert response.json()["error"] == "User not found. They need to register first."


def test_search_user_needs_valid_email(client, make_user):
    a = make_user()

    response = client.post("/api/users/search", json={}, headers=auth(a))
    assert response.status_code == 400
    assert response.json()["error"] == "Email is required"

    response = client.post("/api/users/search", json={"email": "bob@example"}, headers=auth(a))
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid email format"


def test_autocomplete_matches_names_and_email(client, make_user):
    a = make_user()
    ananya = make_user("Ananya", "Rao")
    kiran = make_user("Kiran", "Raorane")
    dev = make_user("Dev", "Shah", email="devrao@mail.com")

    response = client.get("/api/users/search/autocomplete?query=RAO", headers=auth(a))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["count"] == 3
    assert [u["id"] for u in data["users"]] == [ananya.id, dev.id, kiran.id]
    assert data["users"][0] == {
        "id": ananya.id,
        "firstName": "Ananya",
        "lastName": "Rao",
        "email": ananya.email,
        "fullName": "Ananya Rao",
    }


def test_autocomplete_query_length_and_limit(client, make_user):
    a = make_user()
    for i in range(12):
        make_user(f"Sam{i:02d}", "Iyer")

    response = client.get("/api/users/search/autocomplete?query= s ", headers=auth(a))
    assert response.status_code == 400
    assert response.json()["error"] == "Query must be at least 2 characters"

    assert client.get("/api/users/search/autocomplete", headers=auth(a)).status_code == 400

    data = client.get("/api/users/search/autocomplete?query=sam", headers=auth(a)).json()["data"]
    assert data["count"] == 10
    assert data["users"][0]["fullName"] == "Sam00 Iyer"


def test_get_user_by_id(client, make_user):
    a = make_user()
    b = make_user("Bob", "B", college="NIT")

    response = client.get(f"/api/users/{b.id}", headers=auth(a))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == b.id
    assert data["firstName"] == "Bob"
    assert data["college"] == "NIT"

    response = client.get("/api/users/99999", headers=auth(a))
    assert response.status_code == 404
    assert response.json()["error"] == "User not found"

    assert client.get(f"/api/users/{b.id}").status_code == 401


# ----------------------- ADMIN -----------------------

def test_admin_list_users(client, admin, make_user, make_event):
    a = make_user(college="NIT Trichy")
    make_user(college="VIT")
    event = make_event(team_min=1, team_max=1)
    client.post(
        "/api/orders",
        json={"registrations": [{"eventId": event.id, "teamMembers": [a.id]}], "transactionId": "T1"},
        headers=auth(a),
    )

    data = client.get("/api/admin/users?college=nit", headers=auth(admin)).json()["data"]
    assert data["count"] == 1
    assert data["users"][0]["orderCount"] == 1

    data = client.get("/api/admin/users?is_admin=true", headers=auth(admin)).json()["data"]
    assert [u["id"] for u in data["users"]] == [admin.id]

    data = client.get(f"/api/admin/users/{a.id}", headers=auth(admin)).json()["data"]
    assert data["orderCount"] == 1
    assert data["orders"][0]["orderId"] == "ORD000001"


def test_toggle_admin(client, admin, make_user):
    a = make_user()

    response = client.put(f"/api/admin/users/{a.id}/toggle-admin", headers=auth(admin))
    assert response.json()["data"]["isAdmin"] is True

    response = client.put(f"/api/admin/users/{admin.id}/toggle-admin", headers=auth(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot modify your own admin status"

    assert client.get("/api/admin/users", headers=auth(make_user())).status_code == 403
