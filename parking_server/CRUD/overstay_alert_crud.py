from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..models.overstay_alert import OverstayAlert, OverstayAlertStatus


def get_active(db: Session, lot_id: int, vehicle_number: str) -> Optional[OverstayAlert]:
    """The active alert for a (lot, vehicle) pair, if any"""
    return db.query(OverstayAlert).filter(
        OverstayAlert.lot_id == lot_id,
        OverstayAlert.vehicle_number == vehicle_number,
        OverstayAlert.status == OverstayAlertStatus.active,
    ).first()


def create(
    db: Session,
    lot_id: int,
    vehicle_number: str,
    reservation_id: int,
    entry_time: Optional[datetime],
    expected_exit_time: datetime,
    overstay_minutes: int,
) -> OverstayAlert:
    """Insert an active alert; flushed, not committed"""
    alert = OverstayAlert(
        lot_id=lot_id,
        vehicle_number=vehicle_number,
        reservation_id=reservation_id,
        entry_time=entry_time,
        expected_exit_time=expected_exit_time,
        overstay_minutes=overstay_minutes,
        status=OverstayAlertStatus.active,
        created_at=datetime.utcnow(),
    )
    db.add(alert)
    db.flush()
    return alert


def raise_minutes(db: Session, alert_id: int, overstay_minutes: int) -> bool:
    """Grow an active alert's overstay; never lowers the stored value"""
    count = db.query(OverstayAlert).filter(
        OverstayAlert.id == alert_id,
        OverstayAlert.status == OverstayAlertStatus.active,
        OverstayAlert.overstay_minutes < overstay_minutes,
    ).update({OverstayAlert.overstay_minutes: overstay_minutes}, synchronize_session=False)
    return count == 1


def link_fine(db: Session, alert_id: int, fine_id: int) -> None:
    db.query(OverstayAlert).filter(
        OverstayAlert.id == alert_id,
        OverstayAlert.fine_id.is_(None),
    ).update({OverstayAlert.fine_id: fine_id}, synchronize_session=False)


def clear_active(db: Session, lot_id: int, vehicle_number: str, resolved_at: datetime) -> int:
    """Mark every active alert for the pair as cleared; returns the number cleared"""
    return db.query(OverstayAlert).filter(
        OverstayAlert.lot_id == lot_id,
        OverstayAlert.vehicle_number == vehicle_number,
        OverstayAlert.status == OverstayAlertStatus.active,
    ).update({
        OverstayAlert.status: OverstayAlertStatus.cleared,
        OverstayAlert.resolved_at: resolved_at,
    }, synchronize_session=False)
