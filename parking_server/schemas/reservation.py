from pydantic import BaseModel, Field
from datetime import datetime, date, time
from typing import Optional

from ..models.reservation import ReservationStatus


class ReservationOut(BaseModel):
    id: int
    user_id: int
    lot_id: int
    vehicle_number: str

    # Window
    reservation_date: date
    start_time: time
    end_time: time

    amount: int
    status: ReservationStatus

    # One-shot flags
    notification_30_sent: bool
    notification_15_sent: bool
    fine_applied: bool

    checked_in_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True  # For SQLAlchemy ORM compatibility


class CheckInScanRequest(BaseModel):
    """Raw text decoded from the reservation QR code"""
    payload: str = Field(..., min_length=1)


class CheckOutByVehicleRequest(BaseModel):
    lot_id: int
    vehicle_number: str = Field(..., min_length=1)


class CheckOutResponse(BaseModel):
    message: str
    reservation: ReservationOut
    overstay_alerts_cleared: int = 0
