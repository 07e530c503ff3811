# parking_server/services/fine_ledger.py
"""
Administrative operations on fines.

Only pending fines can be changed. None of these touch the reservation's
one-shot flags: waiving a no-show fine leaves the reservation expired.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple, List

from sqlalchemy.orm import Session

from ..CRUD import fine_crud
from ..models.fine import Fine, FineStatus

logger = logging.getLogger(__name__)


class FineLedgerError(Exception):
    pass


class FineNotFound(FineLedgerError):
    def __init__(self, fine_id: int):
        self.fine_id = fine_id
        super().__init__(f"Fine {fine_id} not found")


class FineNotPending(FineLedgerError):
    def __init__(self, fine: Fine):
        self.fine_id = fine.id
        self.status = fine.status
        super().__init__(f"Fine {fine.id} is {fine.status.value}, only pending fines can be changed")


def _update_pending(db: Session, fine_id: int, values: dict) -> Fine:
    fine = fine_crud.get_by_id(db, fine_id)
    if not fine:
        raise FineNotFound(fine_id)
    if fine.status != FineStatus.pending:
        raise FineNotPending(fine)

    if not fine_crud.update_pending(db, fine_id, values):
        # Settled or waived between the read and the write
        db.rollback()
        db.refresh(fine)
        raise FineNotPending(fine)

    db.commit()
    db.refresh(fine)
    return fine


def waive(db: Session, fine_id: int, notes: Optional[str], now: datetime) -> Fine:
    fine = _update_pending(db, fine_id, {
        "status": FineStatus.waived,
        "notes": notes,
        "resolved_at": now,
    })
    logger.info(f"Fine {fine_id} waived")
    return fine


def adjust(db: Session, fine_id: int, amount: int, notes: Optional[str] = None) -> Fine:
    if amount < 0:
        raise ValueError("Fine amount cannot be negative")

    values = {"amount": amount}
    if notes is not None:
        values["notes"] = notes
    fine = _update_pending(db, fine_id, values)
    logger.info(f"Fine {fine_id} adjusted to {amount}")
    return fine


def resolve(db: Session, fine_id: int, transaction_id: Optional[str], now: datetime) -> Fine:
    """Mark a fine as paid, optionally against the transaction that settled it"""
    fine = _update_pending(db, fine_id, {
        "status": FineStatus.resolved,
        "applied_to_transaction_id": transaction_id,
        "resolved_at": now,
    })
    logger.info(f"Fine {fine_id} resolved (transaction {transaction_id})")
    return fine


def pending_summary(db: Session, user_id: int) -> Tuple[List[Fine], int]:
    fines = fine_crud.list_pending_for_user(db, user_id)
    return fines, sum(f.amount for f in fines)
