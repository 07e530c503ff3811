from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from ..models.fine import FineReason, FineStatus


class FineOut(BaseModel):
    id: int
    user_id: int
    reservation_id: int
    amount: int
    reason: FineReason
    description: Optional[str] = None
    status: FineStatus
    notes: Optional[str] = None
    applied_to_transaction_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingFinesOut(BaseModel):
    fines: List[FineOut]
    total: int


class FineWaiveRequest(BaseModel):
    notes: Optional[str] = Field(None, description="Why the fine is waived")


class FineAdjustRequest(BaseModel):
    amount: int = Field(..., ge=0, description="New fine amount")
    notes: Optional[str] = Field(None, description="Why the amount changed")


class FineResolveRequest(BaseModel):
    transaction_id: Optional[str] = Field(
        None, description="Payment transaction the fine was settled with")
