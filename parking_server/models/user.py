"""
User model: the recipient directory used for reservation notifications.
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from ..db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    phone_number = Column(String, index=True, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    reservations = relationship(
        "Reservation", back_populates="user", lazy="select")

    @property
    def display_name(self) -> str:
        return self.full_name or "Valued Customer"
