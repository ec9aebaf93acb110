"""API schemas for the checkout steps."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..checkout import PurchaseAttempt, PurchaseState


class CheckoutStartResponse(BaseModel):
    """Everything the browser needs to open the provider widget."""

    key_id: str = Field(alias="keyId")
    order_id: str = Field(alias="orderId")
    amount: int
    currency: str
    name: str = "Study Notes"
    description: str
    note_id: str = Field(alias="noteId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_attempt(cls, attempt: PurchaseAttempt, *, key_id: str) -> "CheckoutStartResponse":
        return cls(
            key_id=key_id,
            order_id=attempt.order.order_id,
            amount=attempt.order.amount,
            currency=attempt.order.currency,
            description=attempt.listing.title,
            note_id=attempt.listing_id,
        )


class CheckoutConfirmRequest(BaseModel):
    order_id: Optional[str] = Field(alias="orderId", default=None)
    payment_id: Optional[str] = Field(alias="paymentId", default=None)
    signature: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class CheckoutAbortRequest(BaseModel):
    order_id: Optional[str] = Field(alias="orderId", default=None)
    reason: Optional[str] = None
    code: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class CheckoutResultResponse(BaseModel):
    note_id: str = Field(alias="noteId")
    state: PurchaseState
    url: Optional[str] = None
    payment_id: Optional[str] = Field(alias="paymentId", default=None)
    reason: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_attempt(cls, attempt: PurchaseAttempt) -> "CheckoutResultResponse":
        return cls(
            note_id=attempt.listing_id,
            state=attempt.state,
            url=attempt.retrieval_url,
            payment_id=attempt.confirmation.payment_id if attempt.confirmation else None,
            reason=attempt.failure.reason.value if attempt.failure else None,
            message=attempt.failure.message if attempt.failure else None,
        )
