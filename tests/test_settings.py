"""
Tests for site settings and the admin appointment settings endpoint
"""

import pytest

from wellness.core.config import settings
from wellness.services.site_settings import REQUIRE_CONFIRMATION_KEY, SiteSettingsService, parse_flag

from tests.conftest import auth_headers

URL = "/api/v1/admin/settings/appointments"


class TestParseFlag:
    """Tests for reading stored values as booleans"""

    @pytest.mark.parametrize("value, expected", [
        (True, True),
        (False, False),
        ("true", True),
        ("TRUE", True),
        ("false", False),
        ("yes", False),
        (1, True),
        (0, False),
        (0.5, True),
    ])
    def test_values(self, value, expected):
        """Test booleans, strings and numbers."""
        assert parse_flag(value, default=False) is expected

    def test_other_types_use_default(self):
        """Test lists and objects fall back to the default."""
        assert parse_flag(["true"], default=True) is True
        assert parse_flag({"on": True}, default=False) is False
        assert parse_flag(None, default=True) is True

    async def test_stored_string_false_is_false(self, db_session):
        """Test the text "false" does not turn confirmation on."""
        service = SiteSettingsService(db_session)
        await service.set(REQUIRE_CONFIRMATION_KEY, "false")

        assert await service.require_confirmation() is False

    async def test_unset_uses_configured_default(self, db_session, monkeypatch):
        """Test a missing row falls back to the configuration."""
        monkeypatch.setattr(settings, "REQUIRE_CONFIRMATION", True)

        assert await SiteSettingsService(db_session).require_confirmation() is True


class TestAppointmentSettingsEndpoint:
    """Tests for /api/v1/admin/settings/appointments"""

    async def test_admin_reads_default(self, client, admin):
        """Test the configured default is returned before anything is stored."""
        response = await client.get(URL, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"settings": {"requireConfirmation": False}}}

    async def test_admin_toggles(self, client, admin, booking_payload):
        """Test turning confirmation on makes new bookings pending."""
        response = await client.put(URL, json={"requireConfirmation": True}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["data"]["settings"]["requireConfirmation"] is True

        reread = await client.get(URL, headers=auth_headers(admin))
        assert reread.json()["data"]["settings"]["requireConfirmation"] is True

        booking = await client.post("/api/v1/appointments", json=booking_payload)
        assert booking.json()["data"]["status"] == "PENDING"

    async def test_missing_value(self, client, admin):
        """Test the flag must be present."""
        response = await client.put(URL, json={}, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["missingFields"] == ["requireConfirmation"]

    async def test_non_boolean_rejected(self, client, admin):
        """Test a string is not accepted as the flag."""
        response = await client.put(URL, json={"requireConfirmation": "true"}, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["errorCode"] == "INVALID_SETTING"

    async def test_requires_admin(self, client, user):
        """Test other roles are refused."""
        assert (await client.get(URL, headers=auth_headers(user))).status_code == 403
        assert (await client.put(URL, json={"requireConfirmation": True}, headers=auth_headers(user))).status_code == 403
        assert (await client.get(URL)).status_code == 401
