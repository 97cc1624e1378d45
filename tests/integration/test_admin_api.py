"""HTTP tests for the admin screens: users, providers, bookings, catalog, dashboards."""

import pytest


def _book(client, customer, provider_id, service_id="svc-clean"):
    response = client.post(
        "/bookings/customer",
        json={
            "service_id": service_id,
            "provider_id": provider_id,
            "scheduled_date": "2026-04-02",
            "scheduled_time": "14:30:00",
            "address": "3 Oak Lane",
        },
        headers=customer["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_admin_routes_reject_other_roles(client, customer):
    response = client.get("/admin/users", headers=customer["headers"])
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin only"
    assert client.get("/admin/dashboard").status_code == 401


class TestUsers:

    def test_search_and_role_filter(self, client, admin_headers, catalog, customer):
        providers = client.get("/admin/users?role=provider", headers=admin_headers).json()
        assert [u["email"] for u in providers] == ["pat@example.com"]

        found = client.get("/admin/users?q=DANA", headers=admin_headers).json()
        assert [u["display_name"] for u in found] == ["Dana Customer"]

        everyone = client.get("/admin/users?role=all", headers=admin_headers).json()
        assert len(everyone) == 4
        assert all("password_hash" not in u for u in everyone)

    def test_delete_user_removes_provider_profile(self, client, store, admin_headers, provider):
        response = client.delete(f"/admin/users/{provider['user']['id']}", headers=admin_headers)

        assert response.status_code == 204
        assert store.get("users", provider["user"]["id"]) is None
        assert store.list("providers", where={"user_id": provider["user"]["id"]}) == []

    def test_delete_unknown_user(self, client, admin_headers):
        assert client.delete("/admin/users/missing", headers=admin_headers).status_code == 404

    def test_admin_cannot_delete_self(self, client, admin_headers):
        admin_id = client.get("/api/auth/me", headers=admin_headers).json()["id"]
        response = client.delete(f"/admin/users/{admin_id}", headers=admin_headers)
        assert response.status_code == 400


class TestProviders:

    def test_filter_and_approve(self, client, admin_headers, catalog, register_user):
        newcomer = register_user("new@example.com", role="provider", display_name="Newcomer")

        pending = client.get("/admin/providers?status=pending", headers=admin_headers).json()
        assert [p["user_id"] for p in pending] == [newcomer["id"]]
        assert pending[0]["email"] == "new@example.com"
        assert pending[0]["display_name"] == "Newcomer"

        approved = client.put(f"/admin/providers/{pending[0]['id']}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert client.get("/admin/providers?status=pending", headers=admin_headers).json() == []

    def test_search_by_business_name(self, client, admin_headers, catalog):
        found = client.get("/admin/providers?q=home care", headers=admin_headers).json()
        assert [p["id"] for p in found] == ["profile-1"]

    def test_reject(self, client, store, admin_headers, catalog):
        response = client.put("/admin/providers/profile-1/reject", headers=admin_headers)
        assert response.json()["status"] == "rejected"
        assert store.get("providers", "profile-1")["status"] == "rejected"

    def test_unknown_provider(self, client, admin_headers):
        assert client.put("/admin/providers/missing/approve", headers=admin_headers).status_code == 404


class TestBookings:

    @pytest.fixture
    def booking(self, client, customer, provider):
        return _book(client, customer, provider["user"]["id"])

    def test_list_with_filters(self, client, admin_headers, booking):
        rows = client.get("/admin/bookings?status=pending", headers=admin_headers).json()
        assert [b["id"] for b in rows] == [booking["id"]]
        assert rows[0]["service_name"] == "Deep Cleaning"
        assert rows[0]["customer_name"] == "Dana Customer"
        assert rows[0]["allowed_actions"] == ["accepted", "rejected", "cancelled"]

        assert len(client.get("/admin/bookings?q=deep", headers=admin_headers).json()) == 1
        assert client.get("/admin/bookings?q=plumbing", headers=admin_headers).json() == []
        assert client.get("/admin/bookings?status=completed", headers=admin_headers).json() == []

    def test_status_change_goes_through_lifecycle(self, client, admin_headers, booking):
        url = f"/admin/bookings/{booking['id']}/status"
        cancelled = client.put(url, json={"status": "cancelled", "cancellation_reason": "Duplicate"}, headers=admin_headers)

        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "Duplicate"

        again = client.put(url, json={"status": "accepted"}, headers=admin_headers)
        assert again.status_code == 400
        assert again.json()["code"] == "invalid_transition"

    def test_admin_cannot_start_jobs(self, client, admin_headers, booking):
        url = f"/admin/bookings/{booking['id']}/status"
        assert client.put(url, json={"status": "accepted"}, headers=admin_headers).status_code == 200

        response = client.put(url, json={"status": "in_progress"}, headers=admin_headers)
        assert response.status_code == 403

    def test_admin_can_cancel_job_in_progress(self, client, admin_headers, booking, provider):
        for action in ("accept", "start"):
            client.post(f"/bookings/{booking['id']}/{action}", headers=provider["headers"])

        response = client.put(
            f"/admin/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=admin_headers
        )
        assert response.json()["status"] == "cancelled"


class TestCatalog:

    def test_create_and_update_service(self, client, admin_headers, catalog):
        created = client.post(
            "/admin/services",
            json={"name": "Window Washing", "price": 45, "category_id": "cat-clean", "duration": 90},
            headers=admin_headers,
        )
        assert created.status_code == 201
        service = created.json()
        assert service["price"] == 45.0
        assert service["is_active"] is True

        updated = client.put(f"/admin/services/{service['id']}", json={"price": 50.5}, headers=admin_headers)
        assert updated.json()["price"] == 50.5
        assert updated.json()["name"] == "Window Washing"

    def test_create_service_unknown_category(self, client, admin_headers):
        response = client.post(
            "/admin/services", json={"name": "Roofing", "price": 300, "category_id": "nope"}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_negative_price(self, client, admin_headers):
        response = client.post("/admin/services", json={"name": "Roofing", "price": -1}, headers=admin_headers)
        assert response.status_code == 422

    def test_delete_unbooked_service(self, client, store, admin_headers, catalog):
        assert client.delete("/admin/services/svc-plumb", headers=admin_headers).status_code == 204
        assert store.get("services", "svc-plumb") is None

    def test_delete_booked_service_deactivates_it(self, client, store, admin_headers, customer, provider):
        _book(client, customer, provider["user"]["id"])

        assert client.delete("/admin/services/svc-clean", headers=admin_headers).status_code == 204
        assert store.get("services", "svc-clean")["is_active"] is False
        assert [s["id"] for s in client.get("/services").json()] == ["svc-plumb"]

    def test_categories(self, client, admin_headers, catalog):
        duplicate = client.post("/admin/categories", json={"name": "Cleaning"}, headers=admin_headers)
        assert duplicate.status_code == 400

        garden = client.post("/admin/categories", json={"name": "Garden", "icon": "leaf"}, headers=admin_headers)
        assert garden.status_code == 201
        assert garden.json()["service_count"] == 0


class TestDashboards:

    def test_dashboard_totals(self, client, admin_headers, customer, provider):
        booking = _book(client, customer, provider["user"]["id"])
        for action in ("accept", "start", "complete"):
            client.post(f"/bookings/{booking['id']}/{action}", headers=provider["headers"])
        _book(client, customer, provider["user"]["id"])

        body = client.get("/admin/dashboard", headers=admin_headers).json()
        assert body["total_users"] == 5
        assert body["total_providers"] == 2
        assert body["pending_providers"] == 0
        assert body["total_bookings"] == 2
        assert body["total_revenue"] == 80.0
        assert body["bookings_by_status"]["completed"] == 1
        assert body["bookings_by_status"]["pending"] == 1
        assert body["bookings_by_status"]["rejected"] == 0

    def test_analytics_top_services(self, client, store, admin_headers, customer, provider):
        store.update("providers", "profile-1", {"services": []})
        _book(client, customer, "prov-1", service_id="svc-plumb")
        _book(client, customer, "prov-1", service_id="svc-plumb")
        _book(client, customer, provider["user"]["id"])

        body = client.get("/admin/analytics?range=7d&limit=1", headers=admin_headers).json()
        assert body["range"] == "7d"
        assert body["total_bookings"] == 3
        assert body["active_users"] == 1
        assert body["total_revenue"] == 0.0
        assert body["avg_order_value"] == 0.0
        assert body["top_services"] == [
            {"service_id": "svc-plumb", "service_name": "Pipe Repair", "total_bookings": 2}
        ]

        everything = client.get("/admin/analytics?range=all", headers=admin_headers).json()
        assert [s["service_id"] for s in everything["top_services"]] == ["svc-plumb", "svc-clean"]

    def test_analytics_bad_range(self, client, admin_headers):
        assert client.get("/admin/analytics?range=2w", headers=admin_headers).status_code == 422


class TestRegressions:

    def test_tied_services_keep_catalog_order(self, client, admin_headers):
        zeta = client.post("/admin/services", json={"name": "Zeta Windows", "price": 30}, headers=admin_headers).json()
        alpha = client.post("/admin/services", json={"name": "Alpha Gutters", "price": 40}, headers=admin_headers).json()

        body = client.get("/admin/analytics?range=all", headers=admin_headers).json()
        assert [s["service_id"] for s in body["top_services"]] == [zeta["id"], alpha["id"]]

    def test_user_with_bookings_cannot_be_deleted(self, client, store, admin_headers, customer, provider):
        _book(client, customer, provider["user"]["id"])

        for user in (customer["user"], provider["user"]):
            response = client.delete(f"/admin/users/{user['id']}", headers=admin_headers)
            assert response.status_code == 400
            assert store.get("users", user["id"]) is not None
        assert len(store.list("providers", where={"user_id": provider["user"]["id"]})) == 1

    def test_status_filter_includes_legacy_spellings(self, client, store, admin_headers, customer, provider):
        booking = _book(client, customer, provider["user"]["id"])
        store.update("bookings", booking["id"], {"status": "confirmed"})

        rows = client.get("/admin/bookings?status=accepted", headers=admin_headers).json()
        assert [b["id"] for b in rows] == [booking["id"]]
        assert client.get("/admin/bookings?status=pending", headers=admin_headers).json() == []
        assert client.get("/admin/bookings?status=archived", headers=admin_headers).json() == []

    def test_service_active_flag_cannot_be_null(self, client, admin_headers, catalog):
        created = client.post(
            "/admin/services", json={"name": "Roofing", "price": 300, "is_active": None}, headers=admin_headers
        )
        assert created.status_code == 422

        updated = client.put("/admin/services/svc-clean", json={"is_active": None}, headers=admin_headers)
        assert updated.status_code == 400
