"""
Tests for the bonus program endpoints
"""

from decimal import Decimal
import re
import uuid

from wellness.core.cache import bonus_cache_key, cache
from wellness.core.database import commit_session
from wellness.models import BonusTransactionStatus, BonusTransactionType
from wellness.services.bonus_ledger import BonusLedger

from tests.conftest import auth_headers, fetch_balance


class TestUserBonusSummary:
    """Tests for GET /api/v1/bonus/user/{user_id}"""

    async def test_requires_authentication(self, client, user):
        """Test an anonymous request is rejected."""
        response = await client.get(f"/api/v1/bonus/user/{user.id}")

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_other_user_forbidden(self, client, user, other_user):
        """Test a user cannot read another user's bonuses."""
        response = await client.get(
            f"/api/v1/bonus/user/{user.id}", headers=auth_headers(other_user)
        )

        assert response.status_code == 403

    async def test_telegram_request_allowed(self, client, user):
        """Test the mini-app may read without a session."""
        response = await client.get(
            f"/api/v1/bonus/user/{user.id}", headers={"X-Telegram-App": "true"}
        )

        assert response.status_code == 200
        assert response.json()["balance"] == 1000

    async def test_admin_reads_any_user(self, client, user, admin):
        """Test an administrator can read any summary."""
        response = await client.get(
            f"/api/v1/bonus/user/{user.id}", headers=auth_headers(admin)
        )

        assert response.status_code == 200

    async def test_admin_unknown_user(self, client, admin):
        """Test an unknown user id returns 404."""
        response = await client.get(
            f"/api/v1/bonus/user/{uuid.uuid4()}", headers=auth_headers(admin)
        )

        assert response.status_code == 404

    async def test_summary_generates_referral_code(self, client, user):
        """Test the first read assigns an 8-character hex code."""
        response = await client.get(f"/api/v1/bonus/user/{user.id}", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert re.fullmatch(r"[0-9A-F]{8}", body["referralCode"])
        assert body["transactions"] == []
        assert body["referredUsers"] == []
        assert body["referrer"] is None

        again = await client.get(f"/api/v1/bonus/user/{user.id}", headers=auth_headers(user))
        assert again.json()["referralCode"] == body["referralCode"]

    async def test_cache_hit_and_invalidation(self, client, user, admin):
        """Test the summary is cached until the balance changes."""
        url = f"/api/v1/bonus/user/{user.id}"

        first = await client.get(url, headers=auth_headers(user))
        assert first.headers["X-Cache"] == "MISS"
        assert "must-revalidate" in first.headers["Cache-Control"]

        second = await client.get(url, headers=auth_headers(user))
        assert second.headers["X-Cache"] == "HIT"

        adjusted = await client.post(
            "/api/v1/bonus/transactions",
            json={"userId": str(user.id), "amount": 250, "description": "Подарок"},
            headers=auth_headers(admin),
        )
        assert adjusted.status_code == 201

        third = await client.get(url, headers=auth_headers(user))
        assert third.headers["X-Cache"] == "MISS"
        assert third.json()["balance"] == 1250
        assert len(third.json()["transactions"]) == 1

    async def test_cache_kept_until_commit(self, client, db_session, user):
        """Test a ledger write drops the cached summary only once it commits."""
        url = f"/api/v1/bonus/user/{user.id}"
        key = bonus_cache_key(user.id)

        primed = await client.get(url, headers=auth_headers(user))
        assert primed.headers["X-Cache"] == "MISS"

        await BonusLedger(db_session).manual_adjustment(user.id, Decimal("500"), "Подарок")
        # uncommitted: readers would rebuild the entry from the old balance
        assert await cache.get(key) is not None

        await commit_session(db_session)
        assert await cache.get(key) is None

        refreshed = await client.get(url, headers=auth_headers(user))
        assert refreshed.headers["X-Cache"] == "MISS"
        assert refreshed.json()["balance"] == 1500


class TestUserBonusAction:
    """Tests for POST /api/v1/bonus/user/{user_id}"""

    async def test_generate_code(self, client, user):
        """Test a new referral code is issued on request."""
        response = await client.post(
            f"/api/v1/bonus/user/{user.id}",
            json={"generateCode": True},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        body = response.json()
        assert re.fullmatch(r"[0-9A-F]{8}", body["referralCode"])
        assert body["message"]

    async def test_unknown_action(self, client, user):
        """Test a body without a known action is rejected."""
        response = await client.post(
            f"/api/v1/bonus/user/{user.id}", json={}, headers=auth_headers(user)
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "UNKNOWN_ACTION"


class TestBonusSettings:
    """Tests for /api/v1/bonus/settings"""

    async def test_defaults(self, client):
        """Test settings are readable and start with the configured amounts."""
        response = await client.get("/api/v1/bonus/settings")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data == {
            "bookingBonusAmount": 300,
            "referrerBonusAmount": 2000,
            "referralBonusAmount": 2000,
        }

    async def test_admin_updates(self, client, admin):
        """Test an administrator changes the program amounts."""
        payload = {
            "bookingBonusAmount": 500,
            "referrerBonusAmount": 1000,
            "referralBonusAmount": 750,
        }

        response = await client.put("/api/v1/bonus/settings", json=payload, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["data"] == payload

        reread = await client.get("/api/v1/bonus/settings")
        assert reread.json()["data"]["referralBonusAmount"] == 750

    async def test_update_requires_admin(self, client, user):
        """Test a regular user cannot change settings."""
        response = await client.put(
            "/api/v1/bonus/settings",
            json={"bookingBonusAmount": 1, "referrerBonusAmount": 1, "referralBonusAmount": 1},
            headers=auth_headers(user),
        )

        assert response.status_code == 403

    async def test_update_missing_fields(self, client, admin):
        """Test absent amounts are listed by name."""
        response = await client.put(
            "/api/v1/bonus/settings",
            json={"bookingBonusAmount": 100},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["missingFields"] == ["referrerBonusAmount", "referralBonusAmount"]


class TestBonusTransactions:
    """Tests for /api/v1/bonus/transactions"""

    async def _pending(self, db_session, user):
        transaction = await BonusLedger(db_session).create_transaction(
            user.id, Decimal("300"), BonusTransactionType.BOOKING
        )
        await db_session.commit()
        return transaction

    async def test_list_own_history(self, client, db_session, user, other_user):
        """Test users see only their own transactions."""
        await self._pending(db_session, user)
        await self._pending(db_session, other_user)

        response = await client.get("/api/v1/bonus/transactions", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["userId"] == str(user.id)
        assert body["data"][0]["status"] == "pending"

        other = await client.get(
            "/api/v1/bonus/transactions",
            params={"userId": str(other_user.id)},
            headers=auth_headers(user),
        )
        assert other.status_code == 403

    async def test_admin_lists_everything(self, client, db_session, user, other_user, admin):
        """Test administrators see all transactions."""
        await self._pending(db_session, user)
        await self._pending(db_session, other_user)

        response = await client.get("/api/v1/bonus/transactions", headers=auth_headers(admin))

        assert response.json()["meta"]["total"] == 2

    async def test_zero_adjustment_rejected(self, client, user, admin):
        """Test a zero manual adjustment is refused."""
        response = await client.post(
            "/api/v1/bonus/transactions",
            json={"userId": str(user.id), "amount": 0},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400

    async def test_adjustment_for_unknown_user(self, client, admin):
        """Test adjusting an unknown user returns 404."""
        response = await client.post(
            "/api/v1/bonus/transactions",
            json={"userId": str(uuid.uuid4()), "amount": 100},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404

    async def test_status_transitions_move_balance(self, client, db_session, user, admin):
        """Test completing then cancelling a transaction credits and reverses it."""
        transaction = await self._pending(db_session, user)
        url = f"/api/v1/bonus/transactions/{transaction.id}"

        completed = await client.patch(url, json={"status": "completed"}, headers=auth_headers(admin))
        assert completed.status_code == 200
        assert completed.json()["data"]["status"] == BonusTransactionStatus.COMPLETED.value
        assert await fetch_balance(user.id) == Decimal("1300")

        cancelled = await client.patch(url, json={"status": "cancelled"}, headers=auth_headers(admin))
        assert cancelled.status_code == 200
        assert await fetch_balance(user.id) == Decimal("1000")

    async def test_invalid_transition(self, client, db_session, user, admin):
        """Test a cancelled transaction cannot be reopened."""
        transaction = await self._pending(db_session, user)
        url = f"/api/v1/bonus/transactions/{transaction.id}"

        await client.patch(url, json={"status": "cancelled"}, headers=auth_headers(admin))
        response = await client.patch(url, json={"status": "pending"}, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["errorCode"] == "INVALID_STATUS_TRANSITION"
        assert await fetch_balance(user.id) == Decimal("1000")
