"""
Tests for promo code validation and administration endpoints
"""

from datetime import timedelta

from wellness.models.base import utcnow

from tests.conftest import auth_headers


class TestValidatePromo:
    """Tests for POST /api/v1/promos/validate"""

    async def test_valid_code(self, client, promo, service):
        """Test a usable code is described."""
        response = await client.post("/api/v1/promos/validate", json={
            "code": "SPRING10",
            "serviceId": str(service.id),
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["code"] == "SPRING10"
        assert data["discountType"] == "percentage"
        assert data["discountValue"] == 10

    async def test_unknown_code(self, client):
        """Test an unknown code returns 404."""
        response = await client.post("/api/v1/promos/validate", json={"code": "NOPE"})

        assert response.status_code == 404
        assert response.json()["errorCode"] == "PROMO_NOT_FOUND"

    async def test_expired_code(self, client, db_session, promo):
        """Test an expired code returns 400 with the reason."""
        promo.end_date = utcnow() - timedelta(days=1)
        await db_session.commit()

        response = await client.post("/api/v1/promos/validate", json={"code": "SPRING10"})

        assert response.status_code == 400
        body = response.json()
        assert body["errorCode"] == "INVALID_PROMO"
        assert body["error"] == "Срок действия промокода истек"

    async def test_missing_code(self, client):
        """Test an empty code is reported as a missing field."""
        response = await client.post("/api/v1/promos/validate", json={"code": "  "})

        assert response.status_code == 400
        assert response.json()["missingFields"] == ["code"]


class TestAdminPromos:
    """Tests for /api/v1/admin/promos"""

    def _payload(self, **overrides):
        payload = {
            "code": "SUMMER500",
            "description": "Летняя скидка",
            "discountType": "fixed",
            "discountValue": 500,
            "maxUses": 100,
        }
        payload.update(overrides)
        return payload

    async def test_create_promo(self, client, admin, service):
        """Test an administrator creates a code bound to a service."""
        response = await client.post(
            "/api/v1/admin/promos",
            json=self._payload(services=[str(service.id)]),
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["code"] == "SUMMER500"
        assert data["currentUses"] == 0
        assert data["services"] == [{"id": str(service.id), "name": service.name}]

    async def test_duplicate_code(self, client, admin, promo):
        """Test a second code with the same text is a conflict."""
        response = await client.post(
            "/api/v1/admin/promos",
            json=self._payload(code="SPRING10"),
            headers=auth_headers(admin),
        )

        assert response.status_code == 409
        assert response.json()["errorCode"] == "DUPLICATE_PROMO_CODE"

    async def test_percentage_over_100_rejected(self, client, admin):
        """Test a percentage above 100 fails validation."""
        response = await client.post(
            "/api/v1/admin/promos",
            json=self._payload(discountType="percentage", discountValue=150),
            headers=auth_headers(admin),
        )

        assert response.status_code == 422
        assert response.json()["errorCode"] == "VALIDATION_ERROR"

    async def test_non_admin_forbidden(self, client, user):
        """Test a regular user cannot manage codes."""
        response = await client.post(
            "/api/v1/admin/promos", json=self._payload(), headers=auth_headers(user)
        )

        assert response.status_code == 403

    async def test_update_status_and_delete(self, client, admin, promo):
        """Test the full edit cycle of an existing code."""
        headers = auth_headers(admin)
        url = f"/api/v1/admin/promos/{promo.id}"

        updated = await client.put(
            url,
            json=self._payload(code="SPRING15", discountType="percentage", discountValue=15),
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["code"] == "SPRING15"
        assert updated.json()["data"]["discountValue"] == 15

        deactivated = await client.patch(f"{url}/status", json={"isActive": False}, headers=headers)
        assert deactivated.status_code == 200

        detail = await client.get(url, headers=headers)
        assert detail.json()["data"]["isActive"] is False

        deleted = await client.delete(url, headers=headers)
        assert deleted.status_code == 200

        missing = await client.get(url, headers=headers)
        assert missing.status_code == 404
        assert missing.json()["errorCode"] == "PROMO_NOT_FOUND"

    async def test_inactive_code_not_found_on_validate(self, client, admin, promo):
        """Test a deactivated code is reported as not found."""
        await client.patch(
            f"/api/v1/admin/promos/{promo.id}/status",
            json={"isActive": False},
            headers=auth_headers(admin),
        )

        response = await client.post("/api/v1/promos/validate", json={"code": "SPRING10"})

        assert response.status_code == 404
