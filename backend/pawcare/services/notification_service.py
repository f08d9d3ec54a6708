"""
PawCare Backend — Notification Service
========================================

What:  Fire-and-forget email notifications for booking, status, password
       reset and feedback events.
Why:   A booking or status change must succeed even when the mail server is
       down; delivery problems are an operator concern, not a client error.
How:   Routes call NotificationDispatcher, which schedules delivery on the
       request's BackgroundTasks. Starlette runs those after the response
       has been sent. The sender is behind the NotificationSender interface:
       SmtpNotificationSender when SMTP_HOST is configured, otherwise
       LogNotificationSender.

Event Kinds:
    booking_received  → customer   (new booking acknowledgement)
    new_booking       → operator   (alert with booking details)
    status_changed    → customer   (only for confirmed, completed, cancelled)
    password_reset    → account    (temporary password)
    new_feedback      → operator

Failure Handling:
    A sender exception or a False result is logged at ERROR with the event
    kind and recipient, and counted in `failures` (reported by
    /api/health). It never reaches the request that triggered it.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi import BackgroundTasks
from starlette.concurrency import run_in_threadpool

from pawcare.config import Settings

logger = logging.getLogger(__name__)

NOTIFIABLE_STATUSES = ("confirmed", "completed", "cancelled")

SIGNATURE = "\n\nBest regards,\nPawCare Team"


# ══════════════════════════════════════════════════════════════════════════
# Templates
# ══════════════════════════════════════════════════════════════════════════

def _booking_lines(payload: Mapping[str, Any]) -> str:
    lines = [
        f"Booking ID: #{payload.get('id')}",
        f"Service: {payload.get('service_name') or 'N/A'}",
        f"Date: {payload.get('booking_date')}",
        f"Time: {payload.get('booking_time')}",
    ]
    if payload.get("pet_name"):
        lines.append(f"Pet: {payload['pet_name']} ({payload.get('pet_type') or 'Not specified'})")
    return "\n".join(lines)


def _status_message(payload: Mapping[str, Any]) -> Tuple[str, str]:
    status = payload.get("status")
    name = payload.get("customer_name") or "there"
    if status == "confirmed":
        return (
            "Booking Confirmed - PawCare",
            f"Hi {name},\n\nGreat news! Your booking has been confirmed.\n\n"
            f"{_booking_lines(payload)}\n\n"
            "We're looking forward to taking care of your furry friend! "
            "If you have any questions, feel free to contact us." + SIGNATURE,
        )
    if status == "completed":
        return (
            "Service Completed - PawCare",
            f"Hi {name},\n\nYour {payload.get('service_name') or 'booked'} service has been "
            "completed successfully!\n\n"
            f"Thank you for choosing PawCare! We hope {payload.get('pet_name') or 'your pet'} "
            "had a wonderful experience." + SIGNATURE,
        )
    return (
        "Booking Cancelled - PawCare",
        f"Hi {name},\n\nYour booking has been cancelled.\n\n{_booking_lines(payload)}\n\n"
        "If you have any questions or would like to reschedule, please don't hesitate "
        "to contact us." + SIGNATURE,
    )


def render_message(kind: str, payload: Mapping[str, Any]) -> Tuple[str, str]:
    """(subject, plain-text body) for one event."""
    if kind == "booking_received":
        return (
            "Booking Received - PawCare",
            f"Hi {payload.get('customer_name') or 'there'},\n\n"
            "Thank you for booking with PawCare! We have received your request and "
            "will confirm it shortly.\n\n"
            f"{_booking_lines(payload)}\nStatus: Pending Confirmation" + SIGNATURE,
        )
    if kind == "new_booking":
        return (
            f"New Booking #{payload.get('id')} - {payload.get('customer_name')}",
            "A new booking was submitted.\n\n"
            f"Customer: {payload.get('customer_name')}\n"
            f"Email: {payload.get('customer_email')}\n"
            f"Phone: {payload.get('customer_phone') or 'N/A'}\n"
            f"{_booking_lines(payload)}\n"
            f"Notes: {payload.get('notes') or 'None'}",
        )
    if kind == "status_changed":
        return _status_message(payload)
    if kind == "password_reset":
        return (
            "Password Reset - PawCare",
            f"Hi {payload.get('name') or 'there'},\n\n"
            "A password reset was requested for your account. Your temporary password is:\n\n"
            f"    {payload.get('temporary_password')}\n\n"
            "Please log in and change it right away. If you did not request this, "
            "contact us." + SIGNATURE,
        )
    if kind == "new_feedback":
        return (
            f"New Feedback ({payload.get('rating')}/5) - {payload.get('category')}",
            f"From: {payload.get('name')} <{payload.get('email')}>\n"
            f"Rating: {payload.get('rating')}/5\n"
            f"Category: {payload.get('category')}\n"
            f"Public: {'yes' if payload.get('public') else 'no'}\n\n"
            f"{payload.get('message')}",
        )
    raise ValueError(f"Unknown notification kind '{kind}'")


# ══════════════════════════════════════════════════════════════════════════
# Senders
# ══════════════════════════════════════════════════════════════════════════

class NotificationSender(ABC):
    """
    Delivery channel contract.

    send() returns True when the message was handed off, False when the
    channel declined it. It may also raise; the dispatcher handles both.
    """

    @abstractmethod
    async def send(self, kind: str, recipient: str, payload: Mapping[str, Any]) -> bool:
        ...


class SmtpNotificationSender(NotificationSender):
    """Plain-text email over SMTP. smtplib blocks, so delivery runs in the threadpool."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.starttls = settings.smtp_starttls
        self.timeout = settings.smtp_timeout
        self.sender = settings.mail_sender

    def build_message(self, kind: str, recipient: str, payload: Mapping[str, Any]) -> EmailMessage:
        subject, body = render_message(kind, payload)
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        # Port 465 speaks TLS from the first byte; others upgrade with STARTTLS
        smtp_class = smtplib.SMTP_SSL if self.port == 465 else smtplib.SMTP
        with smtp_class(self.host, self.port, timeout=self.timeout) as server:
            if self.starttls and smtp_class is smtplib.SMTP:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

    async def send(self, kind, recipient, payload):
        msg = self.build_message(kind, recipient, payload)
        await run_in_threadpool(self._deliver, msg)
        logger.info("Sent %s email to %s", kind, recipient)
        return True


class LogNotificationSender(NotificationSender):
    """Writes notifications to the log. Used when no SMTP server is configured."""

    async def send(self, kind, recipient, payload):
        subject, _ = render_message(kind, payload)
        logger.info("Email (not sent, SMTP not configured) to %s: %s", recipient, subject)
        return True


def create_notification_sender(settings: Settings) -> NotificationSender:
    if settings.smtp_host:
        return SmtpNotificationSender(settings)
    logger.warning("SMTP_HOST not set; notifications will be logged instead of emailed")
    return LogNotificationSender()


# ══════════════════════════════════════════════════════════════════════════
# Dispatcher
# ══════════════════════════════════════════════════════════════════════════

class NotificationDispatcher:
    """
    Schedules deliveries after the response and keeps delivery counters.

    Payloads are plain dict copies taken while the request still runs, so a
    delivery never touches the database.
    """

    def __init__(self, sender: NotificationSender, operator_email: Optional[str] = None):
        self.sender = sender
        self.operator_email = operator_email
        self.sent = 0
        self.failures = 0

    def dispatch(
        self,
        background_tasks: BackgroundTasks,
        kind: str,
        recipient: Optional[str],
        payload: Mapping[str, Any],
    ) -> bool:
        """Queue one notification; False when there is nobody to send it to."""
        if not recipient:
            logger.debug("Skipping %s notification: no recipient", kind)
            return False
        background_tasks.add_task(self._deliver, kind, recipient, dict(payload))
        return True

    async def _deliver(self, kind: str, recipient: str, payload: Dict[str, Any]) -> None:
        try:
            delivered = await self.sender.send(kind, recipient, payload)
        except Exception:
            self.failures += 1
            logger.error(
                "Notification %s to %s failed", kind, recipient, exc_info=True,
            )
            return
        if delivered:
            self.sent += 1
        else:
            self.failures += 1
            logger.error("Notification %s to %s was not accepted by the sender", kind, recipient)

    # ── Event helpers ─────────────────────────────────────────────────────

    def booking_received(self, background_tasks: BackgroundTasks, booking: Mapping[str, Any]) -> None:
        self.dispatch(background_tasks, "booking_received", booking.get("customer_email"), booking)
        self.dispatch(background_tasks, "new_booking", self.operator_email, booking)

    def status_changed(self, background_tasks: BackgroundTasks, booking: Mapping[str, Any]) -> bool:
        if booking.get("status") not in NOTIFIABLE_STATUSES:
            return False
        return self.dispatch(background_tasks, "status_changed", booking.get("customer_email"), booking)

    def password_reset(
        self,
        background_tasks: BackgroundTasks,
        email: str,
        name: Optional[str],
        temporary_password: str,
    ) -> None:
        self.dispatch(
            background_tasks,
            "password_reset",
            email,
            {"name": name, "temporary_password": temporary_password},
        )

    def new_feedback(self, background_tasks: BackgroundTasks, feedback: Mapping[str, Any]) -> None:
        self.dispatch(background_tasks, "new_feedback", self.operator_email, feedback)
