# parking_server/routes/attendant.py
"""
Attendant actions: check-in (manual or QR scan), check-out, cancel.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..CRUD import reservation_crud
from ..deps import get_clock, get_db, get_dispatcher
from ..schemas.reservation import (
    CheckInScanRequest,
    CheckOutByVehicleRequest,
    CheckOutResponse,
    ReservationOut,
)
from ..services import reservation_gate
from ..services.reservation_gate import RejectionReason, ReservationGateError
from ..utils.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/attendant",
    tags=["attendant"]
)

REJECTION_STATUS_CODES = {
    RejectionReason.not_found: 404,
    RejectionReason.wrong_date: 400,
    RejectionReason.invalid_status: 400,
    RejectionReason.invalid_qr: 400,
    RejectionReason.conflict: 409,
}


def _rejected(e: ReservationGateError) -> HTTPException:
    logger.info(f"Attendant request rejected ({e.reason.value}): {e.message}")
    return HTTPException(
        status_code=REJECTION_STATUS_CODES[e.reason],
        detail={"reason": e.reason.value, "message": e.message},
    )


@router.get("/reservations/{reservation_id}", response_model=ReservationOut)
def get_reservation(reservation_id: int, db: Session = Depends(get_db)):
    reservation = reservation_crud.get_by_id(db, reservation_id)
    if not reservation:
        raise HTTPException(
            status_code=404,
            detail={"reason": RejectionReason.not_found.value,
                    "message": "Reservation not found in system"},
        )
    return reservation


@router.post("/check-in/scan", response_model=ReservationOut)
def check_in_by_scan(
    body: CheckInScanRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Check in the reservation encoded in a scanned QR code"""
    try:
        return reservation_gate.check_in_by_scan(db, body.payload, clock.now())
    except ReservationGateError as e:
        raise _rejected(e)


@router.post("/check-in/{reservation_id}", response_model=ReservationOut)
def check_in(
    reservation_id: int,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    try:
        return reservation_gate.check_in(db, reservation_id, clock.now())
    except ReservationGateError as e:
        raise _rejected(e)


@router.post("/check-out/by-vehicle", response_model=CheckOutResponse)
def check_out_by_vehicle(
    body: CheckOutByVehicleRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Check out today's reservation for a vehicle at a lot"""
    try:
        reservation, cleared = reservation_gate.check_out_by_vehicle(
            db, body.lot_id, body.vehicle_number, clock.now())
    except ReservationGateError as e:
        raise _rejected(e)

    return CheckOutResponse(
        message=f"Vehicle {reservation.vehicle_number} checked out successfully",
        reservation=ReservationOut.model_validate(reservation),
        overstay_alerts_cleared=cleared,
    )


@router.post("/check-out/{reservation_id}", response_model=CheckOutResponse)
def check_out(
    reservation_id: int,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    try:
        reservation, cleared = reservation_gate.check_out(db, reservation_id, clock.now())
    except ReservationGateError as e:
        raise _rejected(e)

    return CheckOutResponse(
        message=f"Vehicle {reservation.vehicle_number} checked out successfully",
        reservation=ReservationOut.model_validate(reservation),
        overstay_alerts_cleared=cleared,
    )


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        return reservation_gate.cancel(db, dispatcher, reservation_id)
    except ReservationGateError as e:
        raise _rejected(e)
