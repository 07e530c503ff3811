from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.fine import Fine, FineReason, FineStatus


def get_by_id(db: Session, fine_id: int) -> Optional[Fine]:
    """Get a fine by ID"""
    return db.query(Fine).filter(Fine.id == fine_id).first()


def get_pending(db: Session, reservation_id: int, reason: FineReason) -> Optional[Fine]:
    """The pending fine for a reservation and reason, if any"""
    return db.query(Fine).filter(
        Fine.reservation_id == reservation_id,
        Fine.reason == reason,
        Fine.status == FineStatus.pending,
    ).first()


def list_pending_for_user(db: Session, user_id: int) -> List[Fine]:
    return db.query(Fine).filter(
        Fine.user_id == user_id,
        Fine.status == FineStatus.pending,
    ).order_by(Fine.created_at.desc(), Fine.id.desc()).all()


def create(
    db: Session,
    user_id: int,
    reservation_id: int,
    amount: int,
    reason: FineReason,
    description: Optional[str] = None,
) -> Fine:
    """Insert a pending fine; flushed, not committed"""
    fine = Fine(
        user_id=user_id,
        reservation_id=reservation_id,
        amount=amount,
        reason=reason,
        description=description,
        status=FineStatus.pending,
        created_at=datetime.utcnow(),
    )
    db.add(fine)
    db.flush()
    return fine


def update_pending(db: Session, fine_id: int, values: dict) -> bool:
    """Apply `values` to a fine only while it is still pending"""
    changes = {getattr(Fine, field): value for field, value in values.items()}
    count = db.query(Fine).filter(
        Fine.id == fine_id,
        Fine.status == FineStatus.pending,
    ).update(changes, synchronize_session=False)
    return count == 1
