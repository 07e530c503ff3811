# parking_server/services/reservation_gate.py
"""
Attendant-facing check-in / check-out of a single reservation.

Every operation either returns the updated reservation or raises
ReservationGateError carrying a typed reason; a rejection never writes.
"""
import enum
import json
import logging
from datetime import datetime
from typing import Tuple

from sqlalchemy.orm import Session

from ..CRUD import overstay_alert_crud, reservation_crud
from ..models.notification import NotificationType
from ..models.reservation import Reservation, ReservationStatus
from ..utils.notification_service import NotificationDispatcher, NotificationService

logger = logging.getLogger(__name__)

CHECK_IN_STATUSES = (ReservationStatus.pending, ReservationStatus.confirmed)
CANCELLABLE_STATUSES = (ReservationStatus.pending, ReservationStatus.confirmed)
# Older rows were checked in without leaving `confirmed`
OCCUPYING_STATUSES = (ReservationStatus.confirmed, ReservationStatus.checked_in)


class RejectionReason(str, enum.Enum):
    not_found = "not_found"
    wrong_date = "wrong_date"
    invalid_status = "invalid_status"
    invalid_qr = "invalid_qr"
    conflict = "conflict"


class ReservationGateError(Exception):
    """A request the gate refuses; distinct from a system fault"""

    def __init__(self, reason: RejectionReason, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)


def _load(db: Session, reservation_id: int) -> Reservation:
    reservation = reservation_crud.get_by_id(db, reservation_id)
    if not reservation:
        raise ReservationGateError(
            RejectionReason.not_found, "Reservation not found in system")
    return reservation


def check_in(db: Session, reservation_id: int, now: datetime) -> Reservation:
    reservation = _load(db, reservation_id)

    if reservation.reservation_date != now.date():
        raise ReservationGateError(
            RejectionReason.wrong_date,
            f"This reservation is for {reservation.reservation_date:%b %d, %Y}, not today")

    if reservation.status not in CHECK_IN_STATUSES:
        raise ReservationGateError(
            RejectionReason.invalid_status,
            f'Reservation status is "{reservation.status.value}"')

    checked_in = reservation_crud.transition_status(
        db,
        reservation_id,
        ReservationStatus.checked_in,
        sources=CHECK_IN_STATUSES,
        guards=(Reservation.checked_in_at.is_(None),),
        values={"checked_in_at": now},
    )
    if not checked_in:
        db.rollback()
        raise ReservationGateError(
            RejectionReason.conflict,
            "Reservation was modified by another process, try again")

    db.commit()
    db.refresh(reservation)
    logger.info(f"Reservation {reservation_id} checked in at {now.isoformat()}")
    return reservation


def parse_scan_payload(payload: str) -> int:
    """Reservation id from the JSON carried by a reservation QR code"""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        raise ReservationGateError(RejectionReason.invalid_qr, "Invalid QR code format")

    if not isinstance(data, dict) or "id" not in data:
        raise ReservationGateError(RejectionReason.invalid_qr, "Invalid QR code format")

    try:
        return int(data["id"])
    except (TypeError, ValueError):
        raise ReservationGateError(RejectionReason.invalid_qr, "Invalid QR code format")


def check_in_by_scan(db: Session, payload: str, now: datetime) -> Reservation:
    return check_in(db, parse_scan_payload(payload), now)


def _is_parked(reservation: Reservation) -> bool:
    return reservation.status in OCCUPYING_STATUSES and reservation.checked_in_at is not None


def check_out(db: Session, reservation_id: int, now: datetime) -> Tuple[Reservation, int]:
    """
    Complete a parked reservation and clear its overstay alerts.

    Returns the reservation and the number of alerts cleared.
    """
    reservation = _load(db, reservation_id)

    if not _is_parked(reservation):
        raise ReservationGateError(
            RejectionReason.invalid_status,
            f'Reservation status is "{reservation.status.value}", only checked-in vehicles can check out')

    completed = reservation_crud.transition_status(
        db,
        reservation_id,
        ReservationStatus.completed,
        sources=OCCUPYING_STATUSES,
        guards=(Reservation.checked_in_at.isnot(None),),
    )
    if not completed:
        db.rollback()
        raise ReservationGateError(
            RejectionReason.conflict,
            "Reservation was modified by another process, try again")

    cleared = overstay_alert_crud.clear_active(
        db, reservation.lot_id, reservation.vehicle_number, resolved_at=now)
    db.commit()
    db.refresh(reservation)

    logger.info(
        f"Reservation {reservation_id} checked out, {cleared} overstay alert(s) cleared")
    return reservation, cleared


def check_out_by_vehicle(
    db: Session, lot_id: int, vehicle_number: str, now: datetime
) -> Tuple[Reservation, int]:
    vehicle_number = vehicle_number.strip()
    reservation = reservation_crud.find_parked_vehicle(
        db, lot_id, vehicle_number, now.date(), OCCUPYING_STATUSES)
    if not reservation:
        raise ReservationGateError(
            RejectionReason.not_found,
            f"No active reservation for {vehicle_number} in this lot today")
    return check_out(db, reservation.id, now)


def cancel(db: Session, dispatcher: NotificationDispatcher, reservation_id: int) -> Reservation:
    reservation = _load(db, reservation_id)

    if reservation.status not in CANCELLABLE_STATUSES:
        raise ReservationGateError(
            RejectionReason.invalid_status,
            f'Reservation status is "{reservation.status.value}", it can no longer be cancelled')

    cancelled = reservation_crud.transition_status(
        db, reservation_id, ReservationStatus.cancelled, sources=CANCELLABLE_STATUSES)
    if not cancelled:
        db.rollback()
        raise ReservationGateError(
            RejectionReason.conflict,
            "Reservation was modified by another process, try again")

    db.commit()
    db.refresh(reservation)
    logger.info(f"Reservation {reservation_id} cancelled")

    try:
        NotificationService.notify(
            db, dispatcher, reservation, NotificationType.reservation_cancelled)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to notify cancellation of reservation {reservation_id}: {e}")

    return reservation
