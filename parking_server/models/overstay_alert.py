# parking_server/models/overstay_alert.py
"""
Overstay alerts: one active row per (lot, vehicle) while a car stays past its window.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..db import Base


class OverstayAlertStatus(str, enum.Enum):
    active = "active"
    cleared = "cleared"


class OverstayAlert(Base):
    __tablename__ = "overstay_alerts"

    id = Column(Integer, primary_key=True, index=True)
    lot_id = Column(Integer, ForeignKey("parking_lots.id"), nullable=False)
    vehicle_number = Column(String, nullable=False)
    reservation_id = Column(Integer, ForeignKey(
        "reservations.id", ondelete="SET NULL"), nullable=True)
    fine_id = Column(Integer, ForeignKey(
        "fines.id", ondelete="SET NULL"), nullable=True)

    entry_time = Column(DateTime, nullable=True)
    expected_exit_time = Column(DateTime, nullable=False)
    overstay_minutes = Column(Integer, default=0, nullable=False)
    status = Column(Enum(OverstayAlertStatus),
                    default=OverstayAlertStatus.active, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    lot = relationship("ParkingLot", lazy="select")

    __table_args__ = (
        Index(
            "uq_overstay_alerts_active_lot_vehicle",
            "lot_id", "vehicle_number",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    def __repr__(self):
        return f"<OverstayAlert {self.id} lot={self.lot_id} vehicle={self.vehicle_number} {self.overstay_minutes}min {self.status}>"
