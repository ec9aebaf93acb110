"""Domain models for entitlements, access decisions and purchase audit events."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..catalog.models import Listing


class Entitlement(BaseModel):
    """Durable proof that a user paid for a listing."""

    user_id: str = Field(min_length=1)
    listing_id: str = Field(min_length=1)
    payment_id: str = Field(min_length=1, description="Provider payment reference")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AccessStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class AccessDecision(BaseModel):
    """Outcome of the access gate for one (user, listing) pair."""

    listing_id: str
    status: AccessStatus
    retrieval_url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="after")
    def _url_only_when_unlocked(self) -> "AccessDecision":
        if self.status == AccessStatus.UNLOCKED and not self.retrieval_url:
            raise ValueError("unlocked decisions require a retrieval_url")
        if self.status == AccessStatus.LOCKED and self.retrieval_url:
            raise ValueError("locked decisions must not carry a retrieval_url")
        return self

    @property
    def is_unlocked(self) -> bool:
        return self.status == AccessStatus.UNLOCKED

    @classmethod
    def locked(cls, listing_id: str) -> "AccessDecision":
        return cls(listing_id=listing_id, status=AccessStatus.LOCKED)

    @classmethod
    def unlocked(cls, listing_id: str, retrieval_url: str) -> "AccessDecision":
        return cls(listing_id=listing_id, status=AccessStatus.UNLOCKED, retrieval_url=retrieval_url)


class CatalogEntry(BaseModel):
    """A listing paired with the viewing user's access decision."""

    listing: Listing
    access: AccessDecision

    model_config = ConfigDict(frozen=True)


class PurchaseAuditEventType(str, Enum):
    """Audit event categories emitted by the purchase workflow."""

    ORDER_CREATED = "order_created"
    PURCHASE_RECORDED = "purchase_recorded"
    DUPLICATE_PURCHASE_IGNORED = "duplicate_purchase_ignored"
    PAYMENT_ABORTED = "payment_aborted"
    CONFIRMATION_REJECTED = "confirmation_rejected"
    RECONCILIATION_REQUIRED = "reconciliation_required"
    ACCESS_GRANTED = "access_granted"
    PURCHASE_FAILED = "purchase_failed"


class PurchaseAuditEvent(BaseModel):
    """Structured audit event for purchase analytics and reconciliation."""

    event_type: PurchaseAuditEventType
    user_id: Optional[str] = None
    listing_id: Optional[str] = None
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(populate_by_name=True, frozen=True)


__all__ = [
    "AccessDecision",
    "AccessStatus",
    "CatalogEntry",
    "Entitlement",
    "PurchaseAuditEvent",
    "PurchaseAuditEventType",
]
