"""
Notification model: in-app record of every message dispatched to a user.
Path: parking_server/models/notification.py
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Enum, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..db import Base


class NotificationType(str, enum.Enum):
    expiry_warning_30 = "expiry_warning_30"
    expiry_warning_15 = "expiry_warning_15"
    no_show_fine = "no_show_fine"
    overstay_fine = "overstay_fine"
    reservation_cancelled = "reservation_cancelled"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey(
        "users.id", ondelete="CASCADE"), nullable=False, index=True)

    # The reservation that triggered this notification
    reservation_id = Column(Integer, ForeignKey(
        "reservations.id", ondelete="CASCADE"), nullable=True, index=True)

    # Notification details
    notification_type = Column(Enum(NotificationType), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)

    # Status tracking
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    read_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", backref="notifications", lazy="select")
    reservation = relationship(
        "Reservation", backref="notifications", lazy="select")

    def mark_as_read(self):
        """Mark notification as read"""
        self.is_read = True
        self.read_at = datetime.utcnow()
