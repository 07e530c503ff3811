# parking_server/services/expiry_reconciler.py
"""
Expiry reconciler: periodic pass over today's confirmed reservations.

Per reservation, first match wins:
  1. no-show past the grace period -> expired + no-show fine
  2. first expiry warning (30 minutes by default)
  3. second, urgent expiry warning (15 minutes by default)

Every side effect is claimed with a conditional UPDATE before it happens,
so overlapping passes never fine or notify twice.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..CRUD import fine_crud, reservation_crud
from ..config import Settings, settings
from ..models.fine import FineReason
from ..models.notification import NotificationType
from ..models.reservation import Reservation, ReservationStatus
from ..schemas.reconcile import ExpiryCheckSummary
from ..utils.notification_service import NotificationDispatcher, NotificationService
from ..utils.time_utils import minutes_since_start, minutes_until_end, no_show_fine
from . import BatchReadError

logger = logging.getLogger(__name__)


def run_expiry_check(
    db: Session,
    dispatcher: NotificationDispatcher,
    now: datetime,
    policy: Settings = settings,
) -> ExpiryCheckSummary:
    today = now.date()
    logger.info(f"[{now.isoformat()}] Running reservation expiry check for {today}")

    try:
        reservations = reservation_crud.list_for_date(
            db, today, [ReservationStatus.confirmed])
        batch = [(r.id, r) for r in reservations]
    except Exception as e:
        db.rollback()
        logger.error(f"Error fetching reservations: {e}")
        raise BatchReadError(str(e)) from e

    logger.info(f"Found {len(batch)} confirmed reservations for today")

    summary = ExpiryCheckSummary()
    for reservation_id, reservation in batch:
        try:
            _reconcile_reservation(db, dispatcher, reservation, now, policy, summary)
        except Exception as e:
            db.rollback()
            logger.error(f"Error processing reservation {reservation_id}: {e}")
            summary.errors.append(
                f"Error processing reservation {reservation_id}: {e}")

    logger.info(f"Reservation check complete: {summary.model_dump()}")
    return summary


def _reconcile_reservation(
    db: Session,
    dispatcher: NotificationDispatcher,
    reservation: Reservation,
    now: datetime,
    policy: Settings,
    summary: ExpiryCheckSummary,
) -> None:
    since_start = minutes_since_start(reservation, now)
    until_end = minutes_until_end(reservation, now)

    logger.debug(
        f"Reservation {reservation.id}: end in {until_end} mins, started {since_start} mins ago")

    if (since_start > policy.NO_SHOW_GRACE_MINUTES
            and reservation.checked_in_at is None
            and not reservation.fine_applied):
        _expire_no_show(db, dispatcher, reservation, policy, summary)
        return

    if (policy.EXPIRY_WARNING_SECOND_MINUTES < until_end <= policy.EXPIRY_WARNING_FIRST_MINUTES
            and not reservation.notification_30_sent):
        _send_warning(db, dispatcher, reservation, "notification_30_sent",
                      NotificationType.expiry_warning_30, until_end, summary)
        return

    if 0 < until_end <= policy.EXPIRY_WARNING_SECOND_MINUTES and not reservation.notification_15_sent:
        _send_warning(db, dispatcher, reservation, "notification_15_sent",
                      NotificationType.expiry_warning_15, until_end, summary)


def _expire_no_show(
    db: Session,
    dispatcher: NotificationDispatcher,
    reservation: Reservation,
    policy: Settings,
    summary: ExpiryCheckSummary,
) -> None:
    reservation_id = reservation.id
    fine_amount = no_show_fine(reservation.amount, policy.NO_SHOW_FINE_RATIO)

    # A concurrent check-in or pass invalidates this update
    expired = reservation_crud.transition_status(
        db,
        reservation_id,
        ReservationStatus.expired,
        sources=[ReservationStatus.confirmed],
        guards=(
            Reservation.checked_in_at.is_(None),
            Reservation.fine_applied.is_(False),
        ),
        values={"fine_applied": True},
    )
    if not expired:
        db.rollback()
        logger.info(
            f"Reservation {reservation_id} changed since it was read, skipping no-show")
        return

    lot_name = reservation.lot.name if reservation.lot else "parking lot"
    fine_crud.create(
        db,
        user_id=reservation.user_id,
        reservation_id=reservation_id,
        amount=fine_amount,
        reason=FineReason.no_show,
        description=f"No-show for reservation at {lot_name}",
    )
    db.commit()

    logger.info(
        f"Marked reservation {reservation_id} as expired (no show), fine {fine_amount}")
    summary.reservations_expired += 1
    summary.fines_applied += 1

    NotificationService.notify(
        db, dispatcher, reservation, NotificationType.no_show_fine,
        fine_amount=fine_amount,
        grace_minutes=policy.NO_SHOW_GRACE_MINUTES,
    )
    summary.notifications_sent += 1


def _send_warning(
    db: Session,
    dispatcher: NotificationDispatcher,
    reservation: Reservation,
    flag: str,
    notification_type: NotificationType,
    minutes_left: int,
    summary: ExpiryCheckSummary,
) -> None:
    reservation_id = reservation.id
    claimed = reservation_crud.claim_flag(
        db, reservation_id, flag,
        guards=(Reservation.status == ReservationStatus.confirmed,),
    )
    if not claimed:
        db.rollback()
        logger.info(f"{flag} already claimed for reservation {reservation_id}")
        return
    db.commit()

    logger.info(
        f"Sending {notification_type.value} for reservation {reservation_id} ({minutes_left} mins left)")
    NotificationService.notify(
        db, dispatcher, reservation, notification_type, minutes_left=minutes_left)
    summary.notifications_sent += 1
