"""
HTTP API: authentication, permission gating and error mapping
"""
from hotelops.errors import GatewayError
from hotelops.utils.security import create_access_token


def _seed_booking(gateway, room_row):
    gateway.seed("rooms", room_row)
    gateway.rpc_results["check_room_availability"] = True


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.get("/api/v1/rooms")
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/api/v1/rooms", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_token_without_profile(self, client):
        token = create_access_token({"sub": "ghost"})
        response = client.get("/api/v1/rooms", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_inactive_profile(self, client, auth_headers):
        response = client.get("/api/v1/rooms", headers=auth_headers("receptionist", is_active=False))
        assert response.status_code == 403

    def test_me(self, client, auth_headers):
        response = client.get("/api/v1/auth/me", headers=auth_headers("housekeeping"))

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "housekeeping"
        assert data["is_housekeeping"] is True
        assert data["routes"] == ["/dashboard", "/rooms"]
        assert "rooms.update_status" in data["permissions"]

    def test_route_check(self, client, auth_headers):
        response = client.get(
            "/api/v1/auth/routes/check", params={"route": "/billing"}, headers=auth_headers("accounts"),
        )
        assert response.json() == {"route": "/billing", "allowed": True}

    def test_permission_registry(self, client, auth_headers):
        data = client.get("/api/v1/auth/permissions", headers=auth_headers("manager")).json()
        assert {"key": "rooms.view", "label": "View Rooms", "category": "rooms"} in data["permissions"]
        assert data["roles"]["housekeeping"] == [
            "dashboard.view", "rooms.view", "rooms.update_status", "reservations.view",
        ]


class TestPermissionGating:

    def test_housekeeping_updates_status_but_cannot_delete(self, client, gateway, auth_headers, room_row):
        gateway.seed("rooms", room_row)
        headers = auth_headers("housekeeping")

        response = client.patch("/api/v1/rooms/room-101/status", json={"status": "cleaning"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cleaning"

        response = client.delete("/api/v1/rooms/room-101", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Permission required: rooms.delete"

    def test_receptionist_cannot_merge_guests(self, client, auth_headers):
        response = client.post(
            "/api/v1/guests/merge", json={"keep_id": "a", "remove_id": "b"}, headers=auth_headers("receptionist"),
        )
        assert response.status_code == 403


class TestErrorMapping:

    def test_not_found(self, client, auth_headers):
        response = client.get("/api/v1/rooms/missing", headers=auth_headers("admin"))
        assert response.status_code == 404

    def test_booking_validation(self, client, auth_headers):
        response = client.post(
            "/api/v1/reservations",
            json={"room_id": "room-101", "check_in_date": "2024-01-10", "check_out_date": "2024-01-15"},
            headers=auth_headers("receptionist"),
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "A guest is required"

    def test_room_unavailable(self, client, gateway, auth_headers, room_row):
        _seed_booking(gateway, room_row)
        gateway.rpc_results["check_room_availability"] = False

        response = client.post(
            "/api/v1/reservations",
            json={"guest_id": "g1", "room_id": "room-101", "check_in_date": "2024-01-10",
                  "check_out_date": "2024-01-15"},
            headers=auth_headers("receptionist"),
        )
        assert response.status_code == 409

    def test_backend_status_is_passed_through(self, client, gateway, auth_headers):
        headers = auth_headers("admin")
        gateway.fail_on("insert", GatewayError("duplicate key", status_code=409, code="23505"))

        response = client.post(
            "/api/v1/room-types", json={"name": "Suite", "base_price": 300, "max_adults": 2}, headers=headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "23505"

    def test_transport_failure_is_bad_gateway(self, client, gateway, auth_headers):
        headers = auth_headers("admin")
        gateway.fail_on("rpc", GatewayError("Backend unreachable"))

        response = client.get(
            "/api/v1/availability/rooms",
            params={"check_in_date": "2024-01-10", "check_out_date": "2024-01-15"},
            headers=headers,
        )
        assert response.status_code == 502


class TestEndpoints:

    def test_create_reservation(self, client, gateway, auth_headers, room_row):
        _seed_booking(gateway, room_row)

        response = client.post(
            "/api/v1/reservations",
            json={"guest_id": "g1", "room_id": "room-101", "check_in_date": "2024-01-10",
                  "check_out_date": "2024-01-15", "num_adults": 2},
            headers=auth_headers("receptionist"),
        )

        assert response.status_code == 201
        assert float(response.json()["total_amount"]) == 870.0

    def test_quote_from_room(self, client, gateway, auth_headers, room_row):
        gateway.seed("rooms", room_row)

        response = client.get(
            "/api/v1/pricing/quote",
            params={"check_in_date": "2024-01-10", "check_out_date": "2024-01-15", "room_id": "room-101"},
            headers=auth_headers("receptionist"),
        )

        data = response.json()
        assert data["nights"] == 5
        assert float(data["total"]) == 870.0

    def test_quote_without_dates_is_zero(self, client, auth_headers):
        response = client.get(
            "/api/v1/pricing/quote", params={"base_price": 150}, headers=auth_headers("receptionist"),
        )
        assert response.json()["nights"] == 0

    def test_availability_check_without_dates(self, client, auth_headers):
        response = client.get("/api/v1/availability/rooms/room-101", headers=auth_headers("receptionist"))
        assert response.json() == {"room_id": "room-101", "available": None}

    def test_document_upload(self, client, gateway, auth_headers):
        response = client.post(
            "/api/v1/guests/g1/documents",
            files={"file": ("passport.pdf", b"%PDF-1.4", "application/pdf")},
            data={"document_type": "passport"},
            headers=auth_headers("receptionist"),
        )

        assert response.status_code == 201
        assert response.json()["file_path"].startswith("g1/")
        assert len(gateway.objects) == 1

    def test_dashboard_is_role_shaped(self, client, gateway, auth_headers, room_row):
        gateway.seed("rooms", room_row)

        data = client.get("/api/v1/dashboard", headers=auth_headers("housekeeping")).json()

        assert data["rooms"]["total"] == 1
        assert data["rooms"]["by_status"]["available"] == 1
        assert data["front_desk"] is None
        assert data["occupancy"] is None
        assert len(data["notices"]) == 2

    def test_export_csv(self, client, gateway, auth_headers, room_row):
        gateway.seed("rooms", room_row)

        response = client.get("/api/v1/exports/rooms", params={"format": "csv"}, headers=auth_headers("manager"))

        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith('attachment; filename="rooms-')
        assert response.text.splitlines()[1].startswith("room-101,rt-deluxe,101,1,available")

    def test_export_requires_dataset_permission(self, client, auth_headers):
        response = client.get("/api/v1/exports/guests", headers=auth_headers("housekeeping"))
        assert response.status_code == 403

    def test_export_outstanding_balances_needs_financial_analytics(self, client, gateway, auth_headers):
        gateway.seed("outstanding_balances", {
            "invoice_id": "inv1", "invoice_number": "INV-1", "total_amount": 100, "balance_due": 40,
            "due_date": "2024-03-20",
        })

        response = client.get(
            "/api/v1/exports/outstanding-balances", params={"format": "json"}, headers=auth_headers("accounts"),
        )
        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith('attachment; filename="outstanding-balances-')

        response = client.get("/api/v1/exports/outstanding-balances", headers=auth_headers("receptionist"))
        assert response.status_code == 403

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


def _seed_invoice(gateway, total=500):
    gateway.seed("invoices", {
        "id": "inv1", "invoice_number": "INV-1", "issue_date": "2024-01-15",
        "total_amount": total, "status": "pending",
    })


class TestBilling:

    def test_invoices_need_billing_view(self, client, gateway, auth_headers):
        _seed_invoice(gateway)

        response = client.get("/api/v1/invoices", headers=auth_headers("accounts"))
        assert response.status_code == 200
        assert float(response.json()[0]["balance_due"]) == 500.0

        response = client.get("/api/v1/invoices", headers=auth_headers("housekeeping"))
        assert response.status_code == 403

    def test_overpayment_is_unprocessable(self, client, gateway, auth_headers):
        _seed_invoice(gateway, total=100)

        response = client.post(
            "/api/v1/payments",
            json={"invoice_id": "inv1", "amount": "150", "payment_method": "cash"},
            headers=auth_headers("accounts"),
        )

        assert response.status_code == 422
        assert response.json()["detail"].startswith("Payment amount would exceed invoice total")

    def test_receptionist_cannot_take_payments(self, client, auth_headers):
        response = client.post(
            "/api/v1/payments",
            json={"invoice_id": "inv1", "amount": "10", "payment_method": "cash"},
            headers=auth_headers("receptionist"),
        )
        assert response.status_code == 403

    def test_refund_approval_is_for_managers(self, client, gateway, auth_headers):
        gateway.seed("refunds", {
            "id": "r1", "payment_id": "p1", "amount": 50, "reason": "Overcharge",
            "refund_method": "cash", "status": "pending",
        })

        response = client.post("/api/v1/payments/refunds/r1/approve", headers=auth_headers("accounts"))
        assert response.status_code == 403

        response = client.post("/api/v1/payments/refunds/r1/approve", headers=auth_headers("manager"))
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

    def test_financial_reports_need_financial_analytics(self, client, auth_headers):
        response = client.get("/api/v1/reports/payment-summary", headers=auth_headers("receptionist"))
        assert response.status_code == 403

        response = client.get("/api/v1/reports/payment-summary", headers=auth_headers("accounts"))
        assert response.status_code == 200

    def test_pricing_rules_are_managed_in_settings(self, client, auth_headers):
        rule = {"name": "Winter", "rule_type": "seasonal", "discount_type": "percentage", "discount_value": "5"}

        response = client.post("/api/v1/pricing/rules", json=rule, headers=auth_headers("accounts"))
        assert response.status_code == 403

        response = client.post("/api/v1/pricing/rules", json=rule, headers=auth_headers("manager"))
        assert response.status_code == 201


class TestFrontDeskChanges:

    def test_room_change_gating(self, client, gateway, auth_headers, room_row):
        _seed_booking(gateway, room_row)
        gateway.seed("rooms", {**room_row, "id": "room-102", "room_number": "102"})
        gateway.seed("reservations", {
            "id": "res-1", "guest_id": "g1", "room_id": "room-101", "check_in_date": "2024-01-10",
            "check_out_date": "2024-01-15", "status": "confirmed", "total_amount": 870,
            "created_by": "receptionist-id", "num_adults": 2, "num_children": 0,
        })
        url = "/api/v1/reservations/res-1/room-change"
        body = {"new_room_id": "room-102", "reason": "Upgrade"}

        response = client.post(url, json=body, headers=auth_headers("housekeeping"))
        assert response.status_code == 403

        response = client.post(url, json=body, headers=auth_headers("receptionist"))
        assert response.status_code == 200
        assert response.json()["room_id"] == "room-102"

    def test_delete_needs_reservations_delete(self, client, gateway, auth_headers):
        gateway.seed("reservations", {"id": "res-1", "status": "cancelled"})

        response = client.delete("/api/v1/reservations/res-1", headers=auth_headers("receptionist"))
        assert response.status_code == 403

        response = client.delete("/api/v1/reservations/res-1", headers=auth_headers("manager"))
        assert response.status_code == 204

    def test_duplicates_route_is_not_a_guest_id(self, client, gateway, auth_headers):
        gateway.seed("guests", {"id": "g1", "first_name": "Ana", "last_name": "Lopez", "email": "ana@example.com"})

        response = client.get(
            "/api/v1/guests/duplicates", params={"email": "ana@example.com"}, headers=auth_headers("receptionist"),
        )

        assert response.status_code == 200
        assert [g["id"] for g in response.json()] == ["g1"]
