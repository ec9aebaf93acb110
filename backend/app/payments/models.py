"""Models describing provider orders and payment confirmations."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LISTING_NOTE_KEY = "noteId"


class OrderIntent(BaseModel):
    """Provider-side order for one checkout attempt; never persisted locally."""

    order_id: str = Field(min_length=1)
    amount: int = Field(ge=1, description="Amount in minor currency units")
    currency: str = Field(min_length=3, max_length=3)
    status: str = "created"
    notes: Dict[str, str] = Field(default_factory=dict)
    receipt: Optional[str] = None
    created_at: Optional[datetime] = None
    provider_payload: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @property
    def listing_id(self) -> Optional[str]:
        return self.notes.get(LISTING_NOTE_KEY)

    @classmethod
    def from_provider(cls, payload: Mapping[str, Any]) -> "OrderIntent":
        """Normalize the provider's order representation."""

        created = payload.get("created_at")
        created_at = (
            datetime.fromtimestamp(int(created), tz=timezone.utc)
            if isinstance(created, (int, float)) and not isinstance(created, bool)
            else None
        )
        return cls(
            order_id=str(payload.get("id") or ""),
            amount=int(payload.get("amount") or 0),
            currency=str(payload.get("currency") or ""),
            status=str(payload.get("status") or "created"),
            notes=_safe_notes(payload.get("notes")),
            receipt=payload.get("receipt") and str(payload.get("receipt")),
            created_at=created_at,
            provider_payload=dict(payload),
        )

    def to_provider_payload(self) -> Dict[str, Any]:
        if self.provider_payload:
            return dict(self.provider_payload)
        body: Dict[str, Any] = {
            "id": self.order_id,
            "entity": "order",
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "notes": dict(self.notes),
        }
        if self.receipt:
            body["receipt"] = self.receipt
        if self.created_at:
            body["created_at"] = int(self.created_at.timestamp())
        return body


class PaymentConfirmation(BaseModel):
    """Success signal delivered by the provider's checkout widget."""

    payment_id: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
    signature: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CheckoutAborted(BaseModel):
    """The provider reported a failure or the user closed the checkout."""

    reason: str = "Checkout was cancelled"
    provider_code: Optional[str] = None

    model_config = ConfigDict(frozen=True)


def _safe_notes(value: object) -> Dict[str, str]:
    # The provider serializes empty notes as a list.
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items()}
    return {}


__all__ = ["CheckoutAborted", "LISTING_NOTE_KEY", "OrderIntent", "PaymentConfirmation"]
