"""API schemas for purchase recording."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordPurchaseRequest(BaseModel):
    user_id: Optional[str] = Field(alias="userId", default=None)
    note_id: Optional[str] = Field(alias="noteId", default=None)
    payment_id: Optional[str] = Field(alias="paymentId", default=None)
    order_id: Optional[str] = Field(alias="orderId", default=None)
    signature: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class RecordPurchaseResponse(BaseModel):
    success: bool = True
