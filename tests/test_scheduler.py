from conftest import at
from parking_server import scheduler
from parking_server.models import ReservationStatus
from parking_server.services.expiry_reconciler import run_expiry_check
from parking_server.utils.time_utils import FixedClock


def test_run_pass_uses_its_own_session(db, engine, dispatcher, make_reservation, monkeypatch):
    from sqlalchemy.orm import sessionmaker

    r = make_reservation()
    monkeypatch.setattr(scheduler, "SessionLocal", sessionmaker(bind=engine))
    monkeypatch.setattr(scheduler, "get_dispatcher", lambda: dispatcher)
    monkeypatch.setattr(scheduler, "get_clock", lambda: FixedClock(at(9, 20)))

    summary = scheduler._run_pass(run_expiry_check)

    assert summary.reservations_expired == 1
    db.refresh(r)
    assert r.status == ReservationStatus.expired
