# parking_server/routes/reconcile.py
"""
Scheduler triggers for the two reconcilers.

A pass that processed its batch answers 200 with the summary, even when
some rows failed; only a failure to read the batch answers 500.
"""
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..deps import get_clock, get_db, get_dispatcher, verify_cron_secret
from ..schemas.reconcile import ExpiryCheckSummary, OverstayCheckSummary
from ..services import BatchReadError
from ..services.expiry_reconciler import run_expiry_check
from ..services.overstay_reconciler import run_overstay_check
from ..utils.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reconcile",
    tags=["reconcile"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.post("/expiry", response_model=ExpiryCheckSummary)
def reconcile_expiry(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Expire no-shows, apply no-show fines and send expiry warnings"""
    try:
        return run_expiry_check(db, dispatcher, clock.now())
    except BatchReadError as e:
        logger.error(f"Expiry check aborted: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/overstay", response_model=OverstayCheckSummary)
def reconcile_overstay(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Raise overstay alerts and escalate overstay fines"""
    try:
        return run_overstay_check(db, dispatcher, clock.now())
    except BatchReadError as e:
        logger.error(f"Overstay check aborted: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
