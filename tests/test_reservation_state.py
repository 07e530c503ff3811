import pytest

from parking_server.CRUD import reservation_crud
from parking_server.models.reservation import (
    ALLOWED_TRANSITIONS,
    InvalidTransition,
    Reservation,
    ReservationStatus,
    TERMINAL_STATUSES,
    can_transition,
    ensure_transition,
    sources_for,
)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {
        ReservationStatus.completed,
        ReservationStatus.cancelled,
        ReservationStatus.expired,
    }


def test_declared_transitions():
    assert can_transition(ReservationStatus.confirmed, ReservationStatus.expired)
    assert can_transition(ReservationStatus.pending, ReservationStatus.checked_in)
    assert can_transition(ReservationStatus.checked_in, ReservationStatus.completed)
    assert not can_transition(ReservationStatus.checked_in, ReservationStatus.expired)
    assert not can_transition(ReservationStatus.pending, ReservationStatus.expired)
    assert not can_transition(ReservationStatus.expired, ReservationStatus.confirmed)


def test_every_status_has_an_entry():
    assert set(ALLOWED_TRANSITIONS) == set(ReservationStatus)


def test_ensure_transition_raises():
    with pytest.raises(InvalidTransition) as exc:
        ensure_transition(ReservationStatus.completed, ReservationStatus.checked_in)
    assert exc.value.current == ReservationStatus.completed
    assert exc.value.target == ReservationStatus.checked_in


def test_sources_for():
    assert sources_for(ReservationStatus.expired) == {ReservationStatus.confirmed}
    assert sources_for(ReservationStatus.checked_in) == {
        ReservationStatus.pending, ReservationStatus.confirmed}
    assert sources_for(ReservationStatus.completed) == {
        ReservationStatus.confirmed, ReservationStatus.checked_in}


def test_transition_status_rejects_undeclared_source(db, make_reservation):
    r = make_reservation(status=ReservationStatus.checked_in)
    with pytest.raises(InvalidTransition):
        reservation_crud.transition_status(
            db, r.id, ReservationStatus.expired, sources=[ReservationStatus.checked_in])


def test_transition_status_only_moves_matching_rows(db, make_reservation):
    r = make_reservation(status=ReservationStatus.pending)

    assert not reservation_crud.transition_status(
        db, r.id, ReservationStatus.expired, sources=[ReservationStatus.confirmed])
    db.rollback()

    assert reservation_crud.transition_status(db, r.id, ReservationStatus.confirmed)
    db.commit()
    db.refresh(r)
    assert r.status == ReservationStatus.confirmed


def test_claim_flag_is_one_shot(db, make_reservation):
    r = make_reservation()

    assert reservation_crud.claim_flag(db, r.id, "notification_30_sent")
    db.commit()
    assert not reservation_crud.claim_flag(db, r.id, "notification_30_sent")
    db.rollback()

    db.refresh(r)
    assert r.notification_30_sent is True


def test_claim_flag_respects_guards(db, make_reservation):
    r = make_reservation(status=ReservationStatus.cancelled)
    assert not reservation_crud.claim_flag(
        db, r.id, "notification_15_sent",
        guards=(Reservation.status == ReservationStatus.confirmed,))
