import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["CRON_SECRET"] = ""

from datetime import date, datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parking_server.db import Base
from parking_server.deps import get_clock, get_db, get_dispatcher
from parking_server.main import app
from parking_server.models import (
    Fine,
    Notification,
    OverstayAlert,
    ParkingLot,
    Reservation,
    ReservationStatus,
    User,
)
from parking_server.utils.time_utils import FixedClock

TODAY = date(2026, 10, 18)


def at(hour, minute=0, second=0, day=TODAY):
    return datetime.combine(day, time(hour, minute, second))


class RecordingDispatcher:
    """Stands in for the SMS/email dispatcher and keeps what it was asked to send"""

    def __init__(self):
        self.sent = []

    def send(self, recipient, subject, body):
        self.sent.append((recipient, subject, body))

    def shutdown(self):
        pass


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def user(db):
    user = User(full_name="Asha Rao", email="asha@example.org", phone_number="9876543210")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def lot(db):
    lot = ParkingLot(name="MG Road Lot", zone="Central", hourly_rate=40)
    db.add(lot)
    db.commit()
    db.refresh(lot)
    return lot


@pytest.fixture
def make_reservation(db, user, lot):
    def _make(**overrides):
        values = dict(
            user_id=user.id,
            lot_id=lot.id,
            vehicle_number="KA01AB1234",
            reservation_date=TODAY,
            start_time=time(9, 0),
            end_time=time(10, 0),
            amount=100,
            status=ReservationStatus.confirmed,
        )
        values.update(overrides)
        reservation = Reservation(**values)
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    return _make


@pytest.fixture
def clock():
    return FixedClock(at(9, 0))


@pytest.fixture
def client(db, clock, dispatcher):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def fines_for(db, reservation_id):
    return db.query(Fine).filter(Fine.reservation_id == reservation_id).all()


def alerts_for(db, lot_id, vehicle_number):
    return db.query(OverstayAlert).filter(
        OverstayAlert.lot_id == lot_id,
        OverstayAlert.vehicle_number == vehicle_number,
    ).all()


def notifications_for(db, reservation_id):
    return db.query(Notification).filter(
        Notification.reservation_id == reservation_id).all()
