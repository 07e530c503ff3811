# Import models in dependency order to avoid relationship resolution issues

# Base models first (no foreign key dependencies)
from .user import User
from .parking_lot import ParkingLot

# Models that depend on users and lots
from .reservation import Reservation, ReservationStatus

# Models that depend on Reservation
from .fine import Fine, FineReason, FineStatus
from .overstay_alert import OverstayAlert, OverstayAlertStatus
from .notification import Notification, NotificationType

# Export all models
__all__ = [
    "User",
    "ParkingLot",
    "Reservation",
    "ReservationStatus",
    "Fine",
    "FineReason",
    "FineStatus",
    "OverstayAlert",
    "OverstayAlertStatus",
    "Notification",
    "NotificationType",
]
