# parking_server/services/overstay_reconciler.py
"""
Overstay reconciler: periodic pass over today's parked reservations.

The fine is recomputed from the elapsed overstay on every pass and stored in
place; only the first creation of the fine notifies the user.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..CRUD import fine_crud, overstay_alert_crud, reservation_crud
from ..config import Settings, settings
from ..models.fine import FineReason
from ..models.notification import NotificationType
from ..models.reservation import Reservation, ReservationStatus
from ..schemas.reconcile import OverstayCheckSummary
from ..utils.notification_service import NotificationDispatcher, NotificationService
from ..utils.time_utils import overstay_fine, overstay_minutes, window_end
from . import BatchReadError

logger = logging.getLogger(__name__)

# Still occupying a space: checked in and not checked out
PARKED_STATUSES = (ReservationStatus.confirmed, ReservationStatus.checked_in)


def run_overstay_check(
    db: Session,
    dispatcher: NotificationDispatcher,
    now: datetime,
    policy: Settings = settings,
) -> OverstayCheckSummary:
    today = now.date()
    logger.info(f"[{now.isoformat()}] Running overstay fine generation for {today}")

    try:
        reservations = reservation_crud.list_for_date(
            db, today, PARKED_STATUSES, checked_in=True)
        batch = [(r.id, r) for r in reservations]
    except Exception as e:
        db.rollback()
        logger.error(f"Error fetching reservations: {e}")
        raise BatchReadError(str(e)) from e

    logger.info(f"Found {len(batch)} active reservations to check")

    summary = OverstayCheckSummary()
    for reservation_id, reservation in batch:
        try:
            _reconcile_reservation(db, dispatcher, reservation, now, policy, summary)
        except Exception as e:
            db.rollback()
            logger.error(f"Error processing reservation {reservation_id}: {e}")
            summary.errors.append(
                f"Error processing reservation {reservation_id}: {e}")

    logger.info(f"Overstay check complete: {summary.model_dump()}")
    return summary


def _reconcile_reservation(
    db: Session,
    dispatcher: NotificationDispatcher,
    reservation: Reservation,
    now: datetime,
    policy: Settings,
    summary: OverstayCheckSummary,
) -> None:
    minutes = overstay_minutes(reservation, now)
    if minutes <= policy.OVERSTAY_GRACE_MINUTES:
        return

    reservation_id = reservation.id
    logger.info(f"Reservation {reservation_id} is overstaying by {minutes} minutes")

    alert_created = False
    alert_updated = False
    alert = overstay_alert_crud.get_active(
        db, reservation.lot_id, reservation.vehicle_number)
    if alert is None:
        alert = overstay_alert_crud.create(
            db,
            lot_id=reservation.lot_id,
            vehicle_number=reservation.vehicle_number,
            reservation_id=reservation_id,
            entry_time=reservation.checked_in_at,
            expected_exit_time=window_end(reservation),
            overstay_minutes=minutes,
        )
        alert_created = True
    else:
        alert_updated = overstay_alert_crud.raise_minutes(db, alert.id, minutes)

    fine_amount = overstay_fine(
        minutes, policy.OVERSTAY_BLOCK_MINUTES, policy.OVERSTAY_RATE_PER_BLOCK)

    fine_created = False
    fine_updated = False
    fine = fine_crud.get_pending(db, reservation_id, FineReason.overstay)
    if fine is None:
        fine = fine_crud.create(
            db,
            user_id=reservation.user_id,
            reservation_id=reservation_id,
            amount=fine_amount,
            reason=FineReason.overstay,
            description=f"Overstay fine ({minutes} minutes past {reservation.end_time:%H:%M})",
        )
        fine_created = True
    elif fine.amount != fine_amount:
        fine_updated = fine_crud.update_pending(db, fine.id, {
            "amount": fine_amount,
            "description": f"Overstay fine ({minutes} minutes past {reservation.end_time:%H:%M})",
        })

    overstay_alert_crud.link_fine(db, alert.id, fine.id)
    db.commit()

    summary.overstay_alerts_created += int(alert_created)
    summary.overstay_alerts_updated += int(alert_updated)
    summary.fines_created += int(fine_created)
    summary.fines_updated += int(fine_updated)

    if fine_created:
        logger.info(f"Created overstay fine {fine_amount} for reservation {reservation_id}")
        NotificationService.notify(
            db, dispatcher, reservation, NotificationType.overstay_fine,
            overstay_minutes=minutes,
            fine_amount=fine_amount,
            rate_per_block=policy.OVERSTAY_RATE_PER_BLOCK,
            block_minutes=policy.OVERSTAY_BLOCK_MINUTES,
        )
        summary.notifications_sent += 1
    elif fine_updated:
        logger.info(f"Raised overstay fine for reservation {reservation_id} to {fine_amount}")
