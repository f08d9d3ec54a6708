"""
PawCare Backend — Notification Tests
======================================

What we test:
    ✅ Every event kind renders a subject and body; unknown kinds are rejected
    ✅ Dispatcher counts deliveries and failures without raising
    ✅ No recipient means no delivery
    ✅ status_changed only fires for confirmed/completed/cancelled
    ✅ SMTP message headers
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import BackgroundTasks

from pawcare.config import Settings
from pawcare.services.notification_service import (
    LogNotificationSender,
    NotificationDispatcher,
    NotificationSender,
    SmtpNotificationSender,
    create_notification_sender,
    render_message,
)

BOOKING = {
    "id": 12,
    "customer_name": "Ana",
    "customer_email": "ana@x.com",
    "customer_phone": "9999999999",
    "service_name": "Grooming",
    "booking_date": "2030-05-01",
    "booking_time": "10:00:00",
    "pet_name": "Rex",
    "pet_type": "dog",
    "status": "pending",
    "notes": None,
}


def make_sender(result=True):
    sender = AsyncMock(spec=NotificationSender)
    sender.send.return_value = result
    return sender


class TestRenderMessage:

    def test_booking_received(self):
        subject, body = render_message("booking_received", BOOKING)
        assert subject == "Booking Received - PawCare"
        assert "Hi Ana" in body
        assert "Booking ID: #12" in body
        assert "Pet: Rex (dog)" in body

    def test_operator_copy(self):
        subject, body = render_message("new_booking", BOOKING)
        assert subject == "New Booking #12 - Ana"
        assert "Email: ana@x.com" in body
        assert "Notes: None" in body

    @pytest.mark.parametrize(
        "status, subject",
        [
            ("confirmed", "Booking Confirmed - PawCare"),
            ("completed", "Service Completed - PawCare"),
            ("cancelled", "Booking Cancelled - PawCare"),
        ],
    )
    def test_status_subjects(self, status, subject):
        assert render_message("status_changed", {**BOOKING, "status": status})[0] == subject

    def test_password_reset_includes_temporary_password(self):
        _, body = render_message("password_reset", {"name": "Ana", "temporary_password": "Ab3dEf6h"})
        assert "Ab3dEf6h" in body

    def test_feedback(self):
        subject, body = render_message(
            "new_feedback",
            {"name": "Ana", "email": "ana@x.com", "rating": 4, "category": "service",
             "message": "Great", "public": True},
        )
        assert subject == "New Feedback (4/5) - service"
        assert "Public: yes" in body

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            render_message("birthday", {})


class TestNotificationDispatcher:

    @pytest.mark.asyncio
    async def test_booking_goes_to_customer_and_operator(self):
        sender = make_sender()
        dispatcher = NotificationDispatcher(sender, operator_email="owner@pawcare.test")
        tasks = BackgroundTasks()

        dispatcher.booking_received(tasks, BOOKING)
        await tasks()

        recipients = [(c.args[0], c.args[1]) for c in sender.send.await_args_list]
        assert recipients == [
            ("booking_received", "ana@x.com"),
            ("new_booking", "owner@pawcare.test"),
        ]
        assert dispatcher.sent == 2
        assert dispatcher.failures == 0

    @pytest.mark.asyncio
    async def test_no_operator_skips_operator_copy(self):
        sender = make_sender()
        dispatcher = NotificationDispatcher(sender)
        tasks = BackgroundTasks()

        dispatcher.booking_received(tasks, BOOKING)
        dispatcher.new_feedback(tasks, {"rating": 5})
        await tasks()

        assert sender.send.await_count == 1
        assert dispatcher.sent == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, expected",
        [("pending", False), ("confirmed", True), ("completed", True), ("cancelled", True)],
    )
    async def test_status_changed_only_for_final_states(self, status, expected):
        sender = make_sender()
        dispatcher = NotificationDispatcher(sender)
        tasks = BackgroundTasks()

        assert dispatcher.status_changed(tasks, {**BOOKING, "status": status}) is expected
        await tasks()
        assert sender.send.await_count == int(expected)

    @pytest.mark.asyncio
    async def test_sender_exception_is_counted(self):
        sender = make_sender()
        sender.send.side_effect = ConnectionRefusedError("smtp down")
        dispatcher = NotificationDispatcher(sender)
        tasks = BackgroundTasks()

        dispatcher.password_reset(tasks, "ana@x.com", "Ana", "Ab3dEf6h")
        await tasks()

        assert dispatcher.failures == 1
        assert dispatcher.sent == 0

    @pytest.mark.asyncio
    async def test_declined_delivery_is_counted(self):
        dispatcher = NotificationDispatcher(make_sender(result=False))
        tasks = BackgroundTasks()

        dispatcher.password_reset(tasks, "ana@x.com", "Ana", "Ab3dEf6h")
        await tasks()

        assert dispatcher.failures == 1

    @pytest.mark.asyncio
    async def test_failures_show_in_health(self, app, client, mock_sender):
        mock_sender.send.side_effect = RuntimeError("boom")

        response = await client.post(
            "/api/bookings",
            json={"name": "Ana", "email": "ana@x.com", "phone": "9999999999", "service": "grooming"},
        )
        assert response.status_code == 201

        health = (await client.get("/api/health")).json()
        assert health["notification_failures"] == 2
        assert health["notifications_sent"] == 0


class TestSenders:

    def test_smtp_message_headers(self):
        settings = Settings(_env_file=None, smtp_host="mail.test", mail_from="PawCare <no-reply@pawcare.test>")
        msg = SmtpNotificationSender(settings).build_message("booking_received", "ana@x.com", BOOKING)
        assert msg["To"] == "ana@x.com"
        assert msg["From"] == "PawCare <no-reply@pawcare.test>"
        assert msg["Subject"] == "Booking Received - PawCare"
        assert "Booking ID: #12" in msg.get_content()

    def test_factory_picks_sender(self):
        assert isinstance(
            create_notification_sender(Settings(_env_file=None, smtp_host=None)),
            LogNotificationSender,
        )
        assert isinstance(
            create_notification_sender(Settings(_env_file=None, smtp_host="mail.test")),
            SmtpNotificationSender,
        )

    @pytest.mark.asyncio
    async def test_log_sender_accepts(self):
        assert await LogNotificationSender().send("password_reset", "a@x.com", {"name": "A"}) is True
