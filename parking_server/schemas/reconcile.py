# parking_server/schemas/reconcile.py

from pydantic import BaseModel, Field
from typing import List


class ExpiryCheckSummary(BaseModel):
    """Result of one expiry reconciler pass"""
    notifications_sent: int = 0
    reservations_expired: int = 0
    fines_applied: int = 0
    errors: List[str] = Field(default_factory=list)


class OverstayCheckSummary(BaseModel):
    """Result of one overstay reconciler pass"""
    fines_created: int = 0
    fines_updated: int = 0
    overstay_alerts_created: int = 0
    overstay_alerts_updated: int = 0
    notifications_sent: int = 0
    errors: List[str] = Field(default_factory=list)
