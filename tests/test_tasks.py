"""
Tests for the appointment auto-completion sweep
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from wellness.core.config import settings
from wellness.models import Appointment, AppointmentStatus, BonusTransactionStatus, BonusTransactionType
from wellness.services.bonus_ledger import BonusLedger
from wellness.core.celery_app import celery_app
from wellness.tasks.appointment_tasks import complete_elapsed_appointments, sweep_elapsed_appointments

from tests.conftest import fetch_balance, fetch_transactions


async def make_appointment(db_session, specialist, day, time_end, status, user=None):
    appointment = Appointment(
        specialist_id=specialist.id,
        user_id=user.id if user else None,
        user_name="Гость",
        user_email="guest@example.com",
        user_phone="+70000000000",
        date=day,
        time_start="09:00",
        time_end=time_end,
        status=status,
        price=Decimal("3000"),
    )
    db_session.add(appointment)
    await db_session.commit()
    return appointment


class TestSweepElapsedAppointments:
    """Tests for the periodic completion job"""

    async def test_completes_finished_confirmed_appointments(self, db_session, user, specialist):
        """Test only confirmed appointments that have ended are completed."""
        now = datetime(2026, 3, 10, 12, 0)
        yesterday = await make_appointment(
            db_session, specialist, date(2026, 3, 9), "10:00", AppointmentStatus.CONFIRMED, user
        )
        ended_today = await make_appointment(
            db_session, specialist, date(2026, 3, 10), "11:30", AppointmentStatus.CONFIRMED
        )
        running = await make_appointment(
            db_session, specialist, date(2026, 3, 10), "13:00", AppointmentStatus.CONFIRMED
        )
        pending = await make_appointment(
            db_session, specialist, date(2026, 3, 9), "10:00", AppointmentStatus.PENDING
        )

        await BonusLedger(db_session).add_booking_bonus(user.id, yesterday.id)
        await db_session.commit()

        result = await sweep_elapsed_appointments(now)

        assert result["success"] is True
        assert result["updated"] == 2
        assert set(result["appointment_ids"]) == {str(yesterday.id), str(ended_today.id)}

        booking = [t for t in await fetch_transactions(user.id) if t.type == BonusTransactionType.BOOKING]
        assert booking[0].status == BonusTransactionStatus.COMPLETED
        assert await fetch_balance(user.id) == Decimal(str(1000 + settings.BOOKING_BONUS_AMOUNT))

        for appointment, expected in (
            (yesterday, AppointmentStatus.COMPLETED),
            (ended_today, AppointmentStatus.COMPLETED),
            (running, AppointmentStatus.CONFIRMED),
            (pending, AppointmentStatus.PENDING),
        ):
            await db_session.refresh(appointment)
            assert appointment.status == expected

    async def test_nothing_to_do(self, db_session, specialist):
        """Test the sweep reports zero when nothing has ended."""
        await make_appointment(
            db_session, specialist, date.today() + timedelta(days=1), "10:00", AppointmentStatus.CONFIRMED
        )

        result = await sweep_elapsed_appointments()

        assert result["updated"] == 0
        assert result["appointment_ids"] == []


class TestCronEndpoint:
    """Tests for GET /api/v1/cron/update-appointment-statuses"""

    async def test_open_without_configured_key(self, client, db_session, specialist):
        """Test the endpoint runs the sweep when no key is configured."""
        await make_appointment(
            db_session, specialist, date.today() - timedelta(days=1), "10:00", AppointmentStatus.CONFIRMED
        )

        response = await client.get("/api/v1/cron/update-appointment-statuses")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["updated"] == 1

    async def test_key_required_when_configured(self, client, monkeypatch):
        """Test a configured key must be presented."""
        monkeypatch.setattr(settings, "CRON_API_KEY", "s3cret")
        url = "/api/v1/cron/update-appointment-statuses"

        missing = await client.get(url)
        assert missing.status_code == 401
        assert missing.json()["errorCode"] == "INVALID_API_KEY"

        wrong = await client.get(url, headers={"X-API-Key": "nope"})
        assert wrong.status_code == 401

        right = await client.get(url, headers={"X-API-Key": "s3cret"})
        assert right.status_code == 200


class TestCeleryWiring:
    """Tests for task registration and routing"""

    def test_sweep_routed_to_appointments_queue(self):
        """Test the periodic task lands on the appointments queue."""
        route = celery_app.amqp.router.route({}, complete_elapsed_appointments.name)

        assert route["queue"].name == "appointments"

    def test_beat_schedules_registered_task(self):
        """Test the beat entry names the registered task."""
        entry = celery_app.conf.beat_schedule["complete-elapsed-appointments"]

        assert entry["task"] == complete_elapsed_appointments.name
        assert entry["task"] in celery_app.tasks
