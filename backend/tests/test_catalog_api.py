"""
PawCare Backend — Health, Service Catalog and Customer List Tests
===================================================================

What we test:
    ✅ Health reports the active backend and notification counters
    ✅ The seeded service catalog is public
    ✅ Unknown service ids return the 404 envelope
    ✅ Envelope keys with no value are left out, empty lists are kept
    ✅ The customer list is admin-only and shows portal registration
"""

import pytest

from conftest import BOOKING_FORM, register_customer


class TestHealth:

    @pytest.mark.asyncio
    async def test_ok(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["message"] == "PawCare API is running"
        assert body["database"] == "sqlite: connected"
        assert body["notifications_sent"] == 0
        assert body["uptime_seconds"] >= 0


class TestServices:

    @pytest.mark.asyncio
    async def test_catalog_is_public(self, client):
        response = await client.get("/api/services")
        assert response.status_code == 200
        services = response.json()["data"]
        assert len(services) == 6
        assert services[0]["name"] == "Pet Sitting"

        one = await client.get(f"/api/services/{services[0]['id']}")
        assert one.json()["data"] == services[0]

    @pytest.mark.asyncio
    async def test_envelope_omits_missing_message(self, client):
        body = (await client.get("/api/services")).json()
        assert set(body) == {"success", "data"}

    @pytest.mark.asyncio
    async def test_unknown_service(self, client):
        response = await client.get("/api/services/9999")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert response.json()["message"] == "Service not found"


class TestCustomerList:

    @pytest.mark.asyncio
    async def test_requires_admin(self, client):
        response = await client.get("/api/customers")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_empty_list_is_still_sent(self, admin_client):
        response = await admin_client.get("/api/customers")
        assert response.json() == {"success": True, "data": []}

    @pytest.mark.asyncio
    async def test_registration_flag(self, admin_client):
        await admin_client.post("/api/bookings", json={**BOOKING_FORM, "email": "walkin@x.com"})
        await register_customer(admin_client)

        response = await admin_client.get("/api/customers")
        assert response.status_code == 200
        customers = {c["email"]: c for c in response.json()["data"]}
        assert customers["walkin@x.com"]["registered"] is False
        assert customers["ana@x.com"]["registered"] is True
        assert customers["ana@x.com"]["user_email"] == "ana@x.com"
