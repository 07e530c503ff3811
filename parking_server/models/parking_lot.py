from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from ..db import Base


class ParkingLot(Base):
    __tablename__ = "parking_lots"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    zone = Column(String, nullable=True)
    hourly_rate = Column(Integer, nullable=False, default=0)

    reservations = relationship(
        "Reservation", back_populates="lot", lazy="select")
