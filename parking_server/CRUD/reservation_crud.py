from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session, joinedload

from ..models.reservation import (
    InvalidTransition,
    Reservation,
    ReservationStatus,
    sources_for,
)


def get_by_id(db: Session, reservation_id: int) -> Optional[Reservation]:
    """Get a reservation by ID"""
    return db.query(Reservation).filter(Reservation.id == reservation_id).first()


def list_for_date(
    db: Session,
    day: date,
    statuses: Iterable[ReservationStatus],
    checked_in: Optional[bool] = None,
) -> List[Reservation]:
    """
    Reservations on `day` in any of `statuses`.

    checked_in=True keeps rows with a check-in timestamp, False keeps rows
    without one, None does not filter.
    """
    query = db.query(Reservation).options(joinedload(Reservation.lot)).filter(
        Reservation.reservation_date == day,
        Reservation.status.in_(list(statuses)),
    )
    if checked_in is True:
        query = query.filter(Reservation.checked_in_at.isnot(None))
    elif checked_in is False:
        query = query.filter(Reservation.checked_in_at.is_(None))
    return query.order_by(Reservation.id).all()


def find_parked_vehicle(
    db: Session,
    lot_id: int,
    vehicle_number: str,
    day: date,
    statuses: Iterable[ReservationStatus],
) -> Optional[Reservation]:
    """
    The reservation a vehicle is currently parked on at a lot on `day`.

    Only rows with a check-in timestamp count. `checked_in` rows win over
    rows still in another status, then the latest check-in.
    """
    return db.query(Reservation).filter(
        Reservation.lot_id == lot_id,
        Reservation.vehicle_number == vehicle_number,
        Reservation.reservation_date == day,
        Reservation.status.in_(list(statuses)),
        Reservation.checked_in_at.isnot(None),
    ).order_by(
        case((Reservation.status == ReservationStatus.checked_in, 0), else_=1),
        Reservation.checked_in_at.desc(),
        Reservation.id.desc(),
    ).first()


def transition_status(
    db: Session,
    reservation_id: int,
    target: ReservationStatus,
    sources: Optional[Iterable[ReservationStatus]] = None,
    guards: tuple = (),
    values: Optional[dict] = None,
) -> bool:
    """
    Move a reservation to `target` with a single conditional UPDATE.

    The row only changes while its status is one of `sources` (every status
    that may legally reach `target` when omitted) and every extra guard
    holds. Returns False when another writer got there first. The caller
    owns the commit.
    """
    allowed = sources_for(target)
    if sources is None:
        sources = allowed
    sources = set(sources)
    for source in sources:
        if source not in allowed:
            raise InvalidTransition(source, target)

    changes = {Reservation.status: target}
    for field, value in (values or {}).items():
        changes[getattr(Reservation, field)] = value

    count = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.status.in_(list(sources)),
        *guards
    ).update(changes, synchronize_session=False)
    return count == 1


def claim_flag(
    db: Session,
    reservation_id: int,
    flag: str,
    guards: tuple = (),
) -> bool:
    """
    Flip a one-shot boolean flag from False to True.

    Only the caller whose UPDATE actually changed the row may perform the
    side effect the flag protects. The caller owns the commit.
    """
    column = getattr(Reservation, flag)
    count = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        column.is_(False),
        *guards
    ).update({column: True}, synchronize_session=False)
    return count == 1
