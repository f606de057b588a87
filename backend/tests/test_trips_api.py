"""
API tests for trips, cost entries and the completion gate.
"""
from fleetops.services.completion_gate import ALREADY_COMPLETED_REASON, UNRESOLVED_FLAGS_REASON


def _create_trip(client, **overrides):
    payload = {
        "driver_name": "Sipho Dlamini",
        "fleet_number": "truck-001",
        "client_name": "Acme Mining",
        "route": "JHB - DBN",
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "base_revenue": 1000,
        "revenue_currency": "ZAR",
        "distance_km": 500,
        "client_type": "external",
    }
    payload.update(overrides)
    response = client.post("/api/trips/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _add_cost(client, trip_id, amount=300, category="Tolls", **kwargs):
    response = client.post(f"/api/trips/{trip_id}/costs", json={"amount": amount, "category": category, **kwargs})
    assert response.status_code == 201, response.text
    return response.json()


class TestTripCrud:
    def test_create_trip_starts_active(self, client):
        trip = _create_trip(client)
        assert trip["status"] == "active"
        assert trip["fleet_number"] == "TRUCK-001"
        assert trip["costs"] == []

    def test_missing_trip_is_404(self, client):
        assert client.get("/api/trips/trip_missing").status_code == 404
        assert client.get("/api/trips/trip_missing/kpis").status_code == 404
        response = client.post("/api/trips/trip_missing/complete", json={"completed_by": "ops"})
        assert response.status_code == 404

    def test_invalid_payload_is_422(self, client):
        response = client.post("/api/trips/", json={"driver_name": "x"})
        assert response.status_code == 422

    def test_list_filters(self, client):
        _create_trip(client, driver_name="Anna", revenue_currency="USD")
        _create_trip(client, driver_name="Sipho")
        assert len(client.get("/api/trips/").json()) == 2
        assert [t["driver_name"] for t in client.get("/api/trips/", params={"currency": "USD"}).json()] == ["Anna"]
        assert len(client.get("/api/trips/", params={"status": "completed"}).json()) == 0

    def test_kpis(self, client):
        trip = _create_trip(client)
        _add_cost(client, trip["id"], amount=300)
        response = client.post(
            f"/api/trips/{trip['id']}/additional-costs",
            json={"cost_type": "demurrage", "amount": 200},
        )
        assert response.status_code == 201
        kpis = client.get(f"/api/trips/{trip['id']}/kpis").json()
        assert kpis["total_expenses"] == 500
        assert kpis["net_profit"] == 500
        assert kpis["profit_margin"] == 50
        assert kpis["cost_per_km"] == 1
        assert kpis["currency"] == "ZAR"


class TestCompletionFlow:
    def test_rejected_until_flag_resolved(self, client):
        trip = _create_trip(client)
        cost = _add_cost(client, trip["id"], amount=100)

        response = client.post(
            f"/api/trips/{trip['id']}/costs/{cost['id']}/flag",
            json={"flagged_by": "auditor", "reason": "Receipt missing"},
        )
        assert response.status_code == 200
        assert response.json()["investigation_status"] == "pending"
        assert client.get(f"/api/trips/{trip['id']}").json()["status"] == "flagged"

        flags = client.get(f"/api/trips/{trip['id']}/flags").json()
        assert flags["flagged_count"] == 1
        assert flags["unresolved_count"] == 1
        assert flags["can_complete"] is False

        response = client.post(f"/api/trips/{trip['id']}/complete", json={"completed_by": "ops"})
        assert response.status_code == 409
        assert response.json()["detail"] == UNRESOLVED_FLAGS_REASON
        assert client.get(f"/api/trips/{trip['id']}").json()["status"] == "flagged"

        response = client.post(
            f"/api/trips/{trip['id']}/costs/{cost['id']}/resolve",
            json={"resolved_by": "auditor", "notes": "Receipt found"},
        )
        assert response.status_code == 200
        assert response.json()["resolved_at"] is not None
        assert client.get(f"/api/trips/{trip['id']}").json()["status"] == "active"

        candidates = client.get("/api/trips/auto-complete-candidates").json()
        assert [t["id"] for t in candidates] == [trip["id"]]

        response = client.post(f"/api/trips/{trip['id']}/complete", json={"completed_by": "ops", "auto": True})
        assert response.status_code == 200
        completed = response.json()
        assert completed["status"] == "completed"
        assert completed["completed_by"] == "ops"
        assert completed["completed_at"] is not None

        response = client.post(f"/api/trips/{trip['id']}/complete", json={"completed_by": "ops"})
        assert response.status_code == 409
        assert response.json()["detail"] == ALREADY_COMPLETED_REASON

        history = client.get(f"/api/trips/{trip['id']}/history").json()
        change_types = [record["change_type"] for record in history]
        assert change_types.count("status_change") == 2
        assert "auto_completion" in change_types

    def test_trip_without_flags_completes(self, client):
        trip = _create_trip(client)
        _add_cost(client, trip["id"])
        response = client.post(f"/api/trips/{trip['id']}/complete", json={"completed_by": "ops"})
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_cost_created_flagged_moves_trip_to_flagged(self, client):
        trip = _create_trip(client)
        cost = _add_cost(client, trip["id"], is_flagged=True, flag_reason="Over budget")
        assert cost["investigation_status"] == "pending"
        assert cost["flagged_at"] is not None
        assert client.get(f"/api/trips/{trip['id']}").json()["status"] == "flagged"

        response = client.delete(f"/api/trips/{trip['id']}/costs/{cost['id']}")
        assert response.status_code == 204
        assert client.get(f"/api/trips/{trip['id']}").json()["status"] == "active"

    def test_update_cost_entry(self, client):
        trip = _create_trip(client)
        cost = _add_cost(client, trip["id"], amount=100)
        response = client.patch(
            f"/api/trips/{trip['id']}/costs/{cost['id']}",
            json={"amount": 150, "investigation_status": "resolved", "edited_by": "clerk"},
        )
        assert response.status_code == 200
        assert response.json()["amount"] == 150
        # unflagged entries never block completion
        assert client.get(f"/api/trips/{trip['id']}/flags").json()["can_complete"] is True

    def test_missing_cost_entry_is_404(self, client):
        trip = _create_trip(client)
        response = client.post(
            f"/api/trips/{trip['id']}/costs/C_missing/flag",
            json={"flagged_by": "auditor"},
        )
        assert response.status_code == 404


class TestDashboard:
    def test_flagged_costs_and_dashboard(self, client):
        first = _create_trip(client, driver_name="Anna")
        second = _create_trip(client, driver_name="Sipho", revenue_currency="USD", base_revenue=400)
        flagged = _add_cost(client, first["id"], amount=100, is_flagged=True)
        _add_cost(client, first["id"], amount=50)
        _add_cost(client, second["id"], amount=25)

        flagged_costs = client.get("/api/trips/flagged-costs").json()
        assert len(flagged_costs) == 1
        assert flagged_costs[0]["cost"]["id"] == flagged["id"]
        assert flagged_costs[0]["trip_driver_name"] == "Anna"

        dashboard = client.get("/api/trips/dashboard").json()
        assert dashboard["total_trips"] == 2
        assert dashboard["total_cost_entries"] == 3
        assert dashboard["flagged_costs"] == 1
        assert dashboard["unresolved_flags"] == 1
        assert dashboard["by_currency"]["ZAR"]["expenses"] == 150
        assert dashboard["by_currency"]["USD"]["profit"] == 375
        assert dashboard["driver_stats"][0]["driver_name"] == "Anna"

        filtered = client.get("/api/trips/dashboard", params={"driver": "Sipho"}).json()
        assert filtered["total_trips"] == 1
        assert filtered["flagged_costs"] == 0
