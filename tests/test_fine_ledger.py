import pytest

from conftest import at
from parking_server.CRUD import fine_crud
from parking_server.models import FineReason, FineStatus, ReservationStatus
from parking_server.services import fine_ledger
from parking_server.services.fine_ledger import FineNotFound, FineNotPending


@pytest.fixture
def fine(db, make_reservation):
    r = make_reservation(status=ReservationStatus.expired, fine_applied=True)
    fine = fine_crud.create(
        db,
        user_id=r.user_id,
        reservation_id=r.id,
        amount=50,
        reason=FineReason.no_show,
        description="No-show for reservation at MG Road Lot",
    )
    db.commit()
    db.refresh(fine)
    return fine


def test_waive(db, fine):
    waived = fine_ledger.waive(db, fine.id, "Medical emergency", at(11, 0))

    assert waived.status == FineStatus.waived
    assert waived.notes == "Medical emergency"
    assert waived.resolved_at == at(11, 0)
    assert waived.amount == 50


def test_waive_keeps_reservation_flags(db, fine):
    fine_ledger.waive(db, fine.id, None, at(11, 0))

    reservation = fine.reservation
    db.refresh(reservation)
    assert reservation.status == ReservationStatus.expired
    assert reservation.fine_applied is True


def test_adjust(db, fine):
    adjusted = fine_ledger.adjust(db, fine.id, 20, notes="Partial waiver")

    assert adjusted.amount == 20
    assert adjusted.status == FineStatus.pending
    assert adjusted.notes == "Partial waiver"


def test_adjust_rejects_negative_amount(db, fine):
    with pytest.raises(ValueError):
        fine_ledger.adjust(db, fine.id, -1)

    db.refresh(fine)
    assert fine.amount == 50


def test_resolve(db, fine):
    resolved = fine_ledger.resolve(db, fine.id, "txn_123", at(12, 0))

    assert resolved.status == FineStatus.resolved
    assert resolved.applied_to_transaction_id == "txn_123"
    assert resolved.resolved_at == at(12, 0)


def test_only_pending_fines_change(db, fine):
    fine_ledger.resolve(db, fine.id, None, at(12, 0))

    with pytest.raises(FineNotPending):
        fine_ledger.waive(db, fine.id, None, at(12, 5))
    with pytest.raises(FineNotPending):
        fine_ledger.adjust(db, fine.id, 10)

    db.refresh(fine)
    assert fine.status == FineStatus.resolved
    assert fine.amount == 50


def test_missing_fine(db):
    with pytest.raises(FineNotFound):
        fine_ledger.waive(db, 404, None, at(12, 0))


def test_pending_summary(db, fine, user):
    other = fine_crud.create(
        db,
        user_id=user.id,
        reservation_id=fine.reservation_id,
        amount=30,
        reason=FineReason.overstay,
    )
    db.commit()

    fines, total = fine_ledger.pending_summary(db, user.id)
    assert {f.id for f in fines} == {fine.id, other.id}
    assert total == 80

    fine_ledger.waive(db, other.id, None, at(12, 0))
    fines, total = fine_ledger.pending_summary(db, user.id)
    assert [f.id for f in fines] == [fine.id]
    assert total == 50
