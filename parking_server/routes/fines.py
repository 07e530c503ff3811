# parking_server/routes/fines.py
"""
Fine ledger routes: pending fines for a user, waive, adjust, resolve.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..deps import get_clock, get_db
from ..schemas.fine import (
    FineAdjustRequest,
    FineOut,
    FineResolveRequest,
    FineWaiveRequest,
    PendingFinesOut,
)
from ..services import fine_ledger
from ..services.fine_ledger import FineNotFound, FineNotPending

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/fines",
    tags=["fines"]
)


def _ledger_error(e: Exception) -> HTTPException:
    if isinstance(e, FineNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, FineNotPending):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("/pending", response_model=PendingFinesOut)
def get_pending_fines(
    user_id: int = Query(..., description="User whose pending fines to list"),
    db: Session = Depends(get_db),
):
    """Pending fines for a user and their total"""
    fines, total = fine_ledger.pending_summary(db, user_id)
    logger.info(f"User {user_id} has {len(fines)} pending fine(s), total {total}")
    return PendingFinesOut(
        fines=[FineOut.model_validate(f) for f in fines],
        total=total,
    )


@router.post("/{fine_id}/waive", response_model=FineOut)
def waive_fine(
    fine_id: int,
    body: FineWaiveRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    try:
        return fine_ledger.waive(db, fine_id, body.notes, clock.now())
    except (FineNotFound, FineNotPending) as e:
        raise _ledger_error(e)


@router.post("/{fine_id}/adjust", response_model=FineOut)
def adjust_fine(
    fine_id: int,
    body: FineAdjustRequest,
    db: Session = Depends(get_db),
):
    try:
        return fine_ledger.adjust(db, fine_id, body.amount, body.notes)
    except (FineNotFound, FineNotPending, ValueError) as e:
        raise _ledger_error(e)


@router.post("/{fine_id}/resolve", response_model=FineOut)
def resolve_fine(
    fine_id: int,
    body: FineResolveRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Settle a fine, e.g. when it was charged with the next parking payment"""
    try:
        return fine_ledger.resolve(db, fine_id, body.transaction_id, clock.now())
    except (FineNotFound, FineNotPending) as e:
        raise _ledger_error(e)
