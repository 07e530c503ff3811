# Path: parking_server/utils/notification_service.py

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import resend
from sqlalchemy.orm import Session
from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ..config import Settings, settings
from ..models.notification import Notification, NotificationType
from ..models.reservation import Reservation
from ..models.user import User
from .phone_utils import format_phone_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    """Detached copy of a user's contact details, safe to hand to worker threads"""
    user_id: int
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Recipient":
        return cls(
            user_id=user.id,
            name=user.display_name,
            email=user.email,
            phone_number=user.phone_number,
        )


class NotificationDispatcher:
    """
    Fire-and-forget delivery of SMS (Twilio) and email (Resend).

    `send` returns as soon as the message is queued; every transport call runs
    on a worker thread with its own timeout, and failures are only logged.
    """

    def __init__(self, config: Settings = settings, executor: Optional[ThreadPoolExecutor] = None):
        self.config = config
        self.executor = executor or ThreadPoolExecutor(
            max_workers=config.NOTIFICATION_WORKERS,
            thread_name_prefix="notify",
        )
        self._twilio: Optional[Client] = None
        if config.RESEND_API_KEY:
            resend.api_key = config.RESEND_API_KEY

    @property
    def twilio(self) -> Client:
        if self._twilio is None:
            self._twilio = Client(
                self.config.TWILIO_ACCOUNT_SID,
                self.config.TWILIO_AUTH_TOKEN,
                http_client=TwilioHttpClient(
                    timeout=self.config.NOTIFICATION_TIMEOUT_SECONDS),
            )
        return self._twilio

    def send(self, recipient: Recipient, subject: str, body: str) -> None:
        self.executor.submit(self._deliver, recipient, subject, body)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False)

    def _deliver(self, recipient: Recipient, subject: str, body: str) -> None:
        if self.config.TWILIO_ENABLED and recipient.phone_number:
            try:
                self.send_sms(recipient.phone_number, f"{subject}\n{body}")
            except Exception as e:
                logger.error(f"SMS to user {recipient.user_id} failed: {e}")

        if self.config.EMAIL_ENABLED and recipient.email:
            try:
                self.send_email(recipient.email, subject, body)
            except Exception as e:
                logger.error(f"Email to user {recipient.user_id} failed: {e}")

    def send_sms(self, phone_number: str, text: str) -> str:
        to = format_phone_number(phone_number, self.config.DEFAULT_COUNTRY_CODE)
        try:
            message = self.twilio.messages.create(
                body=text,
                from_=self.config.TWILIO_PHONE_NUMBER,
                to=to,
            )
        except TwilioRestException as e:
            logger.error(f"Twilio error: {e.code} - {e.msg}")
            raise

        logger.info(f"SMS sent to {to}, SID: {message.sid}")
        return message.sid

    def send_email(self, email: str, subject: str, body: str) -> str:
        html = "".join(f"<p>{line}</p>" for line in body.split("\n") if line)
        params: resend.Emails.SendParams = {
            "from": self.config.EMAIL_FROM,
            "to": [email],
            "subject": subject,
            "html": html,
        }
        sent = resend.Emails.send(params)

        logger.info(f"Email '{subject}' sent to {email}, id: {sent['id']}")
        return sent["id"]



_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """Process-wide dispatcher, also used as a FastAPI dependency"""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher


def _location(reservation: Reservation) -> str:
    lot = reservation.lot
    if lot is None:
        return "N/A"
    return f"{lot.name} ({lot.zone})" if lot.zone else lot.name


def render_message(notification_type: NotificationType, reservation: Reservation,
                   recipient: Recipient, **context) -> tuple:
    """Build (title, message) for a notification type"""
    location = _location(reservation)
    end = reservation.end_time.strftime("%H:%M")
    start = reservation.start_time.strftime("%H:%M")
    greeting = f"Dear {recipient.name},"

    if notification_type == NotificationType.expiry_warning_30:
        title = "Parking Reservation Expiring in 30 Minutes"
        lines = [
            greeting,
            f"Your parking reservation will expire in {context.get('minutes_left', 30)} minutes.",
            f"Location: {location}",
            f"Vehicle: {reservation.vehicle_number}",
            f"Ends at: {end}",
            "Please exit the parking lot before your reservation expires.",
        ]
    elif notification_type == NotificationType.expiry_warning_15:
        title = "Urgent: Parking Reservation Expiring in 15 Minutes"
        lines = [
            greeting,
            f"Your parking reservation will expire in {context.get('minutes_left', 15)} minutes!",
            f"Location: {location}",
            f"Vehicle: {reservation.vehicle_number}",
            f"Ends at: {end}",
            "Please exit the parking lot immediately to avoid overstay charges.",
        ]
    elif notification_type == NotificationType.no_show_fine:
        title = "Reservation Expired - Fine Applied"
        lines = [
            greeting,
            f"Your parking reservation has expired as you did not check in within the "
            f"{context.get('grace_minutes', 15)}-minute grace period.",
            f"Location: {location}",
            f"Vehicle: {reservation.vehicle_number}",
            f"Scheduled Time: {start} - {end}",
            f"Fine Applied: {context['fine_amount']}",
            "This fine will be added to your next parking transaction.",
        ]
    elif notification_type == NotificationType.overstay_fine:
        title = "Overstay Fine Applied"
        lines = [
            greeting,
            "Your vehicle has exceeded the reserved parking time.",
            f"Vehicle: {reservation.vehicle_number}",
            f"Location: {location}",
            f"Reserved Until: {end}",
            f"Overstay: {context['overstay_minutes']} minutes",
            f"Current Fine: {context['fine_amount']}",
            f"Fine increases by {context['rate_per_block']} every "
            f"{context['block_minutes']} minutes.",
            "Please exit the parking lot immediately to avoid additional charges.",
        ]
    elif notification_type == NotificationType.reservation_cancelled:
        title = "Reservation Cancelled"
        lines = [
            greeting,
            f"Your reservation for {reservation.reservation_date} ({start} - {end}) "
            f"at {location} has been cancelled.",
        ]
    else:
        raise ValueError(f"Unknown notification type: {notification_type}")

    return title, "\n".join(lines)


class NotificationService:
    """Service to handle notification creation and delivery"""

    @staticmethod
    def notify(
        db: Session,
        dispatcher: NotificationDispatcher,
        reservation: Reservation,
        notification_type: NotificationType,
        **context
    ) -> Notification:
        """
        Record an in-app notification for the reservation holder and queue
        its SMS/email delivery.

        Raises:
            LookupError: the reservation's user does not exist
        """
        user = db.query(User).filter(User.id == reservation.user_id).first()
        if not user:
            raise LookupError(
                f"No user {reservation.user_id} for reservation {reservation.id}")

        recipient = Recipient.from_user(user)
        title, message = render_message(
            notification_type, reservation, recipient, **context)

        notification = Notification(
            user_id=user.id,
            reservation_id=reservation.id,
            notification_type=notification_type,
            title=title,
            message=message,
            is_read=False,
            created_at=datetime.utcnow()
        )

        db.add(notification)
        db.commit()
        db.refresh(notification)

        dispatcher.send(recipient, title, message)
        logger.info(
            f"Queued {notification_type.value} notification for reservation {reservation.id}")

        return notification

    @staticmethod
    def get_reservation_notifications(db: Session, reservation_id: int) -> List[Notification]:
        """Notifications sent for a reservation, newest first"""
        return db.query(Notification).filter(
            Notification.reservation_id == reservation_id
        ).order_by(Notification.created_at.desc(), Notification.id.desc()).all()
