# Overview: Pytest coverage for the JSON API, session auth and admin gates.

"""
HTTP API tests through the Flask test client.

SECURITY:
- Stock reads and writes need a staff session (anonymous writes only with
  ALLOW_ANONYMOUS_STOCK_UPDATES)
- Audit log, enquiry listing and staff management are admin-only
- The acting username always comes from the session
"""

from smarttrack.extensions import db
from smarttrack.models import Enquiry, StockLog

from conftest import PASSWORD, login


def _add(client, name, amount):
    return client.post("/api/stock", json={"name": name, "amount": amount})


class TestAuth:

    def test_login_returns_staff_without_hash(self, client, alice):
        response = login(client, "alice")
        data = response.get_json()

        assert data["message"] == "Login successful"
        assert data["staff"]["username"] == "alice"
        assert "password_hash" not in data["staff"]

    def test_login_with_email(self, client, alice):
        response = client.post("/api/auth/login", json={"email": "alice@smarttrack.test", "password": PASSWORD})
        assert response.status_code == 200

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"username": "alice"})
        assert response.status_code == 400

    def test_login_bad_password(self, client, alice):
        response = client.post("/api/auth/login", json={"username": "alice", "password": "Wrong123!"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid credentials"

    def test_login_non_object_body(self, client, alice):
        assert client.post("/api/auth/login", json=["alice", PASSWORD]).status_code == 400
        assert client.post("/api/auth/login", json={"username": ["alice"], "password": PASSWORD}).status_code == 400

    def test_me_requires_session(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_me_and_logout(self, staff_client):
        response = staff_client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.get_json()["staff"]["name"] == "Alice Smith"

        assert staff_client.post("/api/auth/logout").status_code == 200
        assert staff_client.get("/api/auth/me").status_code == 401

    def test_deactivated_account_loses_session(self, staff_client, alice):
        alice.is_active = False
        db.session.commit()

        assert staff_client.get("/api/stock").status_code == 401


class TestStock:

    def test_anonymous_requests_rejected(self, client):
        assert client.get("/api/stock").status_code == 401
        assert _add(client, "Rice", 10).status_code == 401
        assert client.post("/api/stock/decrease", json={"name": "Rice", "amount": 1}).status_code == 401

    def test_add_then_list(self, staff_client):
        response = _add(staff_client, "Rice", 120)
        assert response.status_code == 200
        assert response.get_json()["stock"]["quantity"] == 120

        _add(staff_client, "rice", "0.5")
        items = staff_client.get("/api/stock").get_json()["items"]

        assert len(items) == 1
        assert items[0]["name"] == "Rice"
        assert items[0]["quantity"] == 120.5

    def test_get_single_product(self, staff_client):
        _add(staff_client, "Basmati Rice", 300)

        response = staff_client.get("/api/stock/basmati%20rice")
        assert response.status_code == 200
        assert response.get_json()["name"] == "Basmati Rice"

        assert staff_client.get("/api/stock/nothing").status_code == 404

    def test_increase_and_decrease(self, staff_client):
        _add(staff_client, "Rice", 300)

        response = staff_client.post("/api/stock/increase", json={"name": "Rice", "amount": 20})
        assert response.get_json()["stock"]["quantity"] == 320

        response = staff_client.post("/api/stock/decrease", json={"name": "Rice", "amount": 70})
        assert response.status_code == 200
        assert response.get_json()["stock"]["quantity"] == 250

    def test_unknown_product_is_404(self, staff_client):
        for path in ("/api/stock/increase", "/api/stock/decrease"):
            response = staff_client.post(path, json={"name": "Ghost", "amount": 1})
            assert response.status_code == 404

    def test_insufficient_stock_is_409(self, staff_client):
        _add(staff_client, "Rice", 50)

        response = staff_client.post("/api/stock/decrease", json={"name": "Rice", "amount": 60})

        assert response.status_code == 409
        data = response.get_json()
        assert data["requested"] == 60
        assert data["available"] == 50
        assert staff_client.get("/api/stock/Rice").get_json()["quantity"] == 50

    def test_invalid_body_is_400(self, staff_client):
        assert _add(staff_client, "", 10).status_code == 400
        assert _add(staff_client, "Rice", -5).status_code == 400
        assert _add(staff_client, "Rice", "abc").status_code == 400
        assert staff_client.post("/api/stock", data="not json").status_code == 400

    def test_non_object_body_is_400(self, staff_client):
        _add(staff_client, "Rice", 10)

        for path in ("/api/stock", "/api/stock/increase", "/api/stock/decrease"):
            for body in (["Rice", 10], "hello", 42):
                response = staff_client.post(path, json=body)
                assert response.status_code == 400, (path, body)
                assert response.get_json()["error"] == "request body must be a JSON object"

        assert staff_client.get("/api/stock/Rice").get_json()["quantity"] == 10
        assert db.session.query(StockLog).count() == 1

    def test_sub_gram_amount_is_400(self, staff_client):
        assert _add(staff_client, "Rice", 0.0004).status_code == 400
        assert _add(staff_client, "Rice", "1.2345").status_code == 400
        assert db.session.query(StockLog).count() == 0

    def test_username_comes_from_session(self, staff_client):
        staff_client.post("/api/stock", json={"name": "Rice", "amount": 10, "staff": "mallory"})

        log = db.session.query(StockLog).one()
        assert log.staff_username == "alice"

    def test_decrease_below_threshold_alerts(self, staff_client, outbox):
        _add(staff_client, "Rice", 250)

        response = staff_client.post("/api/stock/decrease", json={"name": "Rice", "amount": 151})

        assert response.status_code == 200
        assert response.get_json()["stock"]["quantity"] == 99
        alert = db.session.query(Enquiry).one()
        assert alert.severity == "CRITICALLY_LOW"
        assert alert.staff_username == "alice"
        assert len(outbox) == 1

    def test_landing_on_critical_mark_is_low_not_critical(self, staff_client, outbox):
        _add(staff_client, "Rice", 250)

        response = staff_client.post("/api/stock/decrease", json={"name": "Rice", "amount": 150})

        assert response.get_json()["stock"]["quantity"] == 100
        alert = db.session.query(Enquiry).one()
        assert alert.severity == "LOW_STOCK"
        assert "Status: LOW STOCK" in outbox[0].body

    def test_delivery_failure_does_not_change_response(self, staff_client, transport):
        transport.fail_with = "provider down"
        _add(staff_client, "Rice", 250)

        response = staff_client.post("/api/stock/decrease", json={"name": "Rice", "amount": 150})

        assert response.status_code == 200
        assert response.get_json()["stock"]["quantity"] == 100

    def test_anonymous_writes_when_allowed(self, app, client, outbox):
        app.config["ALLOW_ANONYMOUS_STOCK_UPDATES"] = True

        assert _add(client, "Rice", 150).status_code == 200
        response = client.post("/api/stock/decrease", json={"name": "Rice", "amount": 100})

        assert response.status_code == 200
        assert response.get_json()["stock"]["quantity"] == 50
        assert {log.staff_username for log in db.session.query(StockLog)} == {"Unknown Staff"}
        assert db.session.query(Enquiry).count() == 0
        assert outbox == []
        # Reads still need a session
        assert client.get("/api/stock").status_code == 401


class TestLogs:

    def test_admin_only(self, app, staff_client, admin_client):
        assert app.test_client().get("/api/logs").status_code == 401
        assert staff_client.get("/api/logs").status_code == 403
        assert admin_client.get("/api/logs").status_code == 200

    def test_filters_and_limit(self, staff_client, admin_client):
        _add(staff_client, "Rice", 500)
        _add(admin_client, "Wheat", 500)
        staff_client.post("/api/stock/decrease", json={"name": "Rice", "amount": 1})

        data = admin_client.get("/api/logs").get_json()
        assert data["limit"] == 200
        assert [i["operation"] for i in data["items"]] == ["Decrease", "Add", "Add"]

        data = admin_client.get("/api/logs?staff=ALICE").get_json()
        assert {i["staff_username"] for i in data["items"]} == {"alice"}

        data = admin_client.get("/api/logs?product=whe").get_json()
        assert [i["product_name"] for i in data["items"]] == ["Wheat"]

        data = admin_client.get("/api/logs?limit=1").get_json()
        assert len(data["items"]) == 1

        assert admin_client.get("/api/logs?limit=0").get_json()["limit"] == 1
        assert admin_client.get("/api/logs?limit=5000").get_json()["limit"] == 1000


class TestEnquiries:

    def test_submit_requires_session(self, client):
        response = client.post("/api/enquiries", json={"product_name": "Quinoa", "quantity": 5})
        assert response.status_code == 401

    def test_submit_and_list(self, staff_client, admin_client, outbox):
        response = staff_client.post("/api/enquiries", json={
            "product_name": "Quinoa",
            "quantity": 5,
            "message": "Please stock this",
            "staff_name": "Someone Else",
        })

        assert response.status_code == 201
        enquiry = response.get_json()["enquiry"]
        assert enquiry["kind"] == "STAFF_ENQUIRY"
        assert enquiry["staff_name"] == "Alice Smith"
        assert enquiry["quantity"] == 5
        assert len(outbox) == 1

        assert staff_client.get("/api/enquiries").status_code == 403

        items = admin_client.get("/api/enquiries").get_json()["items"]
        assert [i["product_name"] for i in items] == ["Quinoa"]

        assert admin_client.get("/api/enquiries?kind=LOW_STOCK").get_json()["items"] == []
        assert admin_client.get("/api/enquiries?kind=bogus").status_code == 400

    def test_submit_invalid(self, staff_client):
        response = staff_client.post("/api/enquiries", json={"product_name": "Quinoa"})
        assert response.status_code == 400

    def test_submit_non_object_body(self, staff_client, outbox):
        assert staff_client.post("/api/enquiries", json="hello").status_code == 400
        assert staff_client.post("/api/enquiries", json=[{"product_name": "Quinoa"}]).status_code == 400
        assert db.session.query(Enquiry).count() == 0
        assert outbox == []


class TestStaffManagement:

    NEW_STAFF = {
        "name": "Carol Clerk",
        "email": "carol@smarttrack.test",
        "username": "carol",
        "password": "Password456!",
    }

    def test_non_admin_forbidden(self, staff_client):
        assert staff_client.get("/api/staff").status_code == 403
        assert staff_client.post("/api/staff", json=self.NEW_STAFF).status_code == 403

    def test_create_and_login(self, app, admin_client):
        response = admin_client.post("/api/staff", json=self.NEW_STAFF)
        assert response.status_code == 201
        assert response.get_json()["username"] == "carol"

        assert admin_client.post("/api/staff", json=self.NEW_STAFF).status_code == 409
        assert admin_client.post("/api/staff", json={**self.NEW_STAFF, "username": "c2",
                                                     "email": "c2@smarttrack.test",
                                                     "password": "weak"}).status_code == 400

        carol = app.test_client()
        login(carol, "carol", "Password456!")

    def test_update_and_delete(self, admin_client, alice):
        response = admin_client.patch(f"/api/staff/{alice.id}", json={"phone": "555"})
        assert response.status_code == 200
        assert response.get_json()["phone"] == "555"

        assert admin_client.patch(f"/api/staff/{alice.id}", json={"username": "x"}).status_code == 400
        assert admin_client.patch("/api/staff/999", json={"phone": "1"}).status_code == 404

        assert admin_client.delete(f"/api/staff/{alice.id}").status_code == 200
        assert admin_client.delete(f"/api/staff/{alice.id}").status_code == 404

    def test_admin_cannot_demote_or_delete_self(self, admin_client, admin):
        assert admin_client.patch(f"/api/staff/{admin.id}", json={"is_admin": False}).status_code == 400
        assert admin_client.delete(f"/api/staff/{admin.id}").status_code == 400
        assert admin_client.patch(f"/api/staff/{admin.id}", json={"is_active": False}).status_code == 400
        assert admin.is_admin is True
        assert admin.is_active is True

    def test_flags_must_be_booleans(self, admin_client, alice, admin):
        for flag in ("is_admin", "is_active"):
            for value in ("false", "true", 0, 1, None):
                response = admin_client.patch(f"/api/staff/{alice.id}", json={flag: value})
                assert response.status_code == 400, (flag, value)

        # A string never slips past the self-demotion guard either
        assert admin_client.patch(f"/api/staff/{admin.id}", json={"is_admin": "false"}).status_code == 400
        assert alice.is_admin is False
        assert alice.is_active is True
        assert admin.is_admin is True

        response = admin_client.post("/api/staff", json={**self.NEW_STAFF, "is_admin": "false"})
        assert response.status_code == 400

    def test_non_object_body(self, admin_client, alice):
        assert admin_client.patch(f"/api/staff/{alice.id}", json=[1]).status_code == 400
        assert admin_client.patch(f"/api/staff/{alice.id}", json="hello").status_code == 400
        assert admin_client.post("/api/staff", json=["carol"]).status_code == 400

    def test_rejected_patch_changes_nothing(self, admin_client, alice):
        response = admin_client.patch(f"/api/staff/{alice.id}", json={"phone": "777", "is_admin": "yes"})

        assert response.status_code == 400
        assert admin_client.get("/api/staff").get_json()["items"][0]["phone"] == "0123456789"


class TestSystem:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["checks"]["mail"]["transport"] == "memory"
        assert data["checks"]["mail"]["admin_email_set"] is True

    def test_cors_for_known_origin(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})

        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    def test_no_cors_for_unknown_origin(self, client):
        response = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers
