"""API schemas for order creation."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateOrderRequest(BaseModel):
    amount: Optional[Decimal] = None
    note_id: Optional[str] = Field(alias="noteId", default=None)

    model_config = ConfigDict(populate_by_name=True)
