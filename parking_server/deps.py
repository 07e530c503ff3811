"""
Request dependencies shared by the routers: database session, clock,
notification dispatcher and the scheduler secret check.
"""
import hmac
from typing import Optional

from fastapi import Header, HTTPException, status

from .config import settings
from .db import get_db
from .utils.notification_service import get_dispatcher
from .utils.time_utils import SystemClock

__all__ = ["get_db", "get_clock", "get_dispatcher", "verify_cron_secret"]

_clock = SystemClock(settings.TIMEZONE)


def get_clock():
    """Wall clock in the municipal timezone; overridden in tests"""
    return _clock


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)):
    """Reject scheduler calls without the shared secret, when one is configured"""
    if not settings.CRON_SECRET:
        return
    if not x_cron_secret or not hmac.compare_digest(x_cron_secret, settings.CRON_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing cron secret",
        )
