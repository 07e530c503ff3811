# parking_server/models/fine.py
"""
Fine model: monetary penalties raised by the reconcilers.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, Text, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..db import Base


class FineReason(str, enum.Enum):
    no_show = "no_show"
    overstay = "overstay"


class FineStatus(str, enum.Enum):
    pending = "pending"
    resolved = "resolved"
    waived = "waived"


class Fine(Base):
    __tablename__ = "fines"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reservation_id = Column(Integer, ForeignKey(
        "reservations.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Integer, nullable=False)
    reason = Column(Enum(FineReason), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(FineStatus), default=FineStatus.pending, nullable=False)

    # Administrative and settlement details
    notes = Column(Text, nullable=True)
    applied_to_transaction_id = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow,
                        onupdate=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", lazy="select")
    reservation = relationship("Reservation", back_populates="fines", lazy="select")

    __table_args__ = (
        # At most one pending fine per (reservation, reason)
        Index(
            "uq_fines_pending_reservation_reason",
            "reservation_id", "reason",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def __repr__(self):
        return f"<Fine {self.id} reservation={self.reservation_id} {self.reason} {self.amount} {self.status}>"
