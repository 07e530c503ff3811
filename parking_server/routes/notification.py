# parking_server/routes/notification.py
"""
Read access to the in-app notification records.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..deps import get_db
from ..schemas.notification import NotificationOut
from ..utils.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"]
)


@router.get("/by-reservation/{reservation_id}", response_model=List[NotificationOut])
def get_notifications_by_reservation(reservation_id: int, db: Session = Depends(get_db)):
    """Every notification sent for a reservation, newest first"""
    notifications = NotificationService.get_reservation_notifications(db, reservation_id)
    logger.info(
        f"Retrieved {len(notifications)} notifications for reservation {reservation_id}")
    return notifications
