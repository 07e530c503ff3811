# parking_server/models/reservation.py
"""
Reservation model: a single-day parking window for one vehicle in one lot.
"""
from sqlalchemy import Column, Integer, Date, Time, Boolean, ForeignKey, String, Enum, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..db import Base


class ReservationStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    checked_in = "checked_in"
    completed = "completed"
    cancelled = "cancelled"
    expired = "expired"


# Declared lifecycle; any status write outside this table is rejected
ALLOWED_TRANSITIONS = {
    ReservationStatus.pending: {
        ReservationStatus.confirmed,
        ReservationStatus.checked_in,
        ReservationStatus.cancelled,
    },
    ReservationStatus.confirmed: {
        ReservationStatus.checked_in,
        ReservationStatus.expired,
        ReservationStatus.cancelled,
        # Only for rows checked in without leaving `confirmed`
        ReservationStatus.completed,
    },
    ReservationStatus.checked_in: {
        ReservationStatus.completed,
    },
    ReservationStatus.completed: set(),
    ReservationStatus.cancelled: set(),
    ReservationStatus.expired: set(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


class InvalidTransition(ValueError):
    """Raised when a status change is not part of the declared lifecycle"""

    def __init__(self, current: ReservationStatus, target: ReservationStatus):
        self.current = ReservationStatus(current)
        self.target = ReservationStatus(target)
        super().__init__(
            f"Transition {self.current.value} -> {self.target.value} is not allowed")


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return ReservationStatus(target) in ALLOWED_TRANSITIONS[ReservationStatus(current)]


def ensure_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(current, target)


def sources_for(target: ReservationStatus) -> set:
    """Every status from which `target` may be reached"""
    target = ReservationStatus(target)
    return {status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets}


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    lot_id = Column(Integer, ForeignKey("parking_lots.id"), nullable=False, index=True)
    vehicle_number = Column(String, nullable=False)

    # Window (wall-clock, same calendar day)
    reservation_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    amount = Column(Integer, nullable=False, default=0)
    status = Column(Enum(ReservationStatus),
                    default=ReservationStatus.pending, nullable=False)

    # One-shot side effect flags, never reset once set
    notification_30_sent = Column(Boolean, default=False, nullable=False)
    notification_15_sent = Column(Boolean, default=False, nullable=False)
    fine_applied = Column(Boolean, default=False, nullable=False)

    # Written only by the check-in gate
    checked_in_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow,
                        onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="reservations", lazy="select")
    lot = relationship("ParkingLot", back_populates="reservations", lazy="select")
    fines = relationship("Fine", back_populates="reservation", lazy="select")

    __table_args__ = (
        Index("ix_reservations_date_status", "reservation_date", "status"),
        Index("ix_reservations_lot_vehicle", "lot_id", "vehicle_number"),
    )

    def __repr__(self):
        return f"<Reservation {self.id} lot={self.lot_id} vehicle={self.vehicle_number} status={self.status}>"
