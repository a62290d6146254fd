"""
Tests for specialist profiles and the service catalog
"""

import base64
from datetime import date
from decimal import Decimal
import uuid

from wellness.models import Appointment, AppointmentStatus, Service

from tests.conftest import auth_headers

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)


class TestSpecialistReads:
    """Tests for public specialist endpoints"""

    async def test_list_specialists(self, client, specialist):
        """Test the public list includes the profile."""
        response = await client.get("/api/v1/specialists")

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["fullName"] == "Мария Смирнова"

    async def test_get_specialist(self, client, specialist):
        """Test one profile is returned by id."""
        response = await client.get(f"/api/v1/specialists/{specialist.id}")

        assert response.status_code == 200
        assert response.json()["data"]["position"] == "Массажист"

    async def test_unknown_specialist(self, client):
        """Test an unknown id returns 404."""
        response = await client.get(f"/api/v1/specialists/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["errorCode"] == "SPECIALIST_NOT_FOUND"


class TestSpecialistWrites:
    """Tests for creating, editing and deleting profiles"""

    async def test_admin_creates(self, client, admin):
        """Test an administrator adds a specialist."""
        response = await client.post(
            "/api/v1/specialists",
            json={"firstName": "Олег", "lastName": "Кузнецов", "experience": 3},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["data"]["fullName"] == "Олег Кузнецов"

    async def test_create_with_taken_account(self, client, admin, specialist, specialist_user):
        """Test one account cannot be linked to two profiles."""
        response = await client.post(
            "/api/v1/specialists",
            json={"firstName": "Олег", "lastName": "Кузнецов", "userId": str(specialist_user.id)},
            headers=auth_headers(admin),
        )

        assert response.status_code == 409

    async def test_admin_updates_json(self, client, admin, specialist):
        """Test a partial JSON update changes only the given fields."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            json={"position": "Остеопат", "experience": 10},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["position"] == "Остеопат"
        assert data["experience"] == 10
        assert data["firstName"] == "Мария"

    async def test_linked_user_updates_own_profile(self, client, specialist_user, specialist):
        """Test a specialist edits their own description."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            json={"description": "<i>Опыт</i> работы"},
            headers=auth_headers(specialist_user),
        )

        assert response.status_code == 200
        assert response.json()["data"]["description"] == "Опыт работы"

    async def test_linked_user_cannot_relink(self, client, specialist_user, other_user, specialist):
        """Test only administrators change the account link."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            json={"userId": str(other_user.id)},
            headers=auth_headers(specialist_user),
        )

        assert response.status_code == 403

    async def test_other_user_forbidden(self, client, user, specialist):
        """Test a stranger cannot edit the profile."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            json={"position": "Хакер"},
            headers=auth_headers(user),
        )

        assert response.status_code == 403

    async def test_invalid_update_is_validation_error(self, client, admin, specialist):
        """Test a bad field value uses the validation envelope."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            json={"experience": -1},
            headers=auth_headers(admin),
        )

        assert response.status_code == 422
        assert response.json()["details"][0]["field"] == "experience"

    async def test_multipart_photo_upload(self, client, admin, specialist):
        """Test a form with a photo file stores the image."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            data={"position": "Массажист-реабилитолог", "description": "null"},
            files={"photo": ("avatar.png", PNG_BYTES, "image/png")},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["photo"].startswith("/uploads/specialists/")
        assert data["photo"].endswith(".png")
        assert data["description"] is None
        assert data["position"] == "Массажист-реабилитолог"

    async def test_multipart_rejects_non_image(self, client, admin, specialist):
        """Test a non-image upload is refused."""
        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            files={"photo": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400

    async def test_data_url_photo(self, client, admin, specialist):
        """Test a base64 data URL in JSON is stored as a file."""
        data_url = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

        response = await client.put(
            f"/api/v1/specialists/{specialist.id}",
            json={"photo": data_url},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["data"]["photo"].startswith("/uploads/specialists/")

    async def test_delete_blocked_by_appointments(self, client, db_session, admin, specialist):
        """Test a specialist with bookings cannot be removed."""
        db_session.add(Appointment(
            specialist_id=specialist.id,
            user_name="Гость",
            user_email="guest@example.com",
            user_phone="+70000000000",
            date=date(2026, 1, 15),
            time_start="10:00",
            time_end="11:00",
            status=AppointmentStatus.COMPLETED,
        ))
        await db_session.commit()

        response = await client.delete(f"/api/v1/specialists/{specialist.id}", headers=auth_headers(admin))

        assert response.status_code == 409
        assert response.json()["errorCode"] == "SPECIALIST_HAS_APPOINTMENTS"

    async def test_delete(self, client, admin, specialist):
        """Test an administrator removes a specialist without bookings."""
        response = await client.delete(f"/api/v1/specialists/{specialist.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert (await client.get(f"/api/v1/specialists/{specialist.id}")).status_code == 404


class TestServiceCatalog:
    """Tests for /api/v1/services"""

    async def test_archived_services_hidden(self, client, db_session, service):
        """Test archived services are not listed."""
        db_session.add(Service(name="Старая услуга", price=Decimal("100"), is_archived=True))
        await db_session.commit()

        response = await client.get("/api/v1/services")

        assert response.status_code == 200
        assert [s["name"] for s in response.json()["data"]] == ["Массаж спины"]

    async def test_get_service(self, client, service):
        """Test a service is returned with its price."""
        response = await client.get(f"/api/v1/services/{service.id}")

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 3000

    async def test_unknown_service(self, client):
        """Test an unknown service returns 404."""
        response = await client.get(f"/api/v1/services/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["errorCode"] == "SERVICE_NOT_FOUND"
