"""State, failure and attempt records for the purchase workflow."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from uuid import uuid4

from fastapi import status

from ..catalog.models import Listing
from ..errors import MarketplaceError
from ..payments.models import OrderIntent, PaymentConfirmation
from ..purchases.models import Entitlement


class PurchaseState(str, Enum):
    IDLE = "idle"
    ORDER_REQUESTED = "order_requested"
    AWAITING_PROVIDER_UI = "awaiting_provider_ui"
    PROVIDER_SUCCEEDED = "provider_succeeded"
    ENTITLEMENT_RECORDED = "entitlement_recorded"
    UNLOCKED = "unlocked"
    FAILED = "failed"


TERMINAL_STATES: FrozenSet[PurchaseState] = frozenset({PurchaseState.UNLOCKED, PurchaseState.FAILED})

ALLOWED_TRANSITIONS: Dict[PurchaseState, FrozenSet[PurchaseState]] = {
    PurchaseState.IDLE: frozenset({PurchaseState.ORDER_REQUESTED, PurchaseState.FAILED}),
    PurchaseState.ORDER_REQUESTED: frozenset({PurchaseState.AWAITING_PROVIDER_UI, PurchaseState.FAILED}),
    PurchaseState.AWAITING_PROVIDER_UI: frozenset({PurchaseState.PROVIDER_SUCCEEDED, PurchaseState.FAILED}),
    PurchaseState.PROVIDER_SUCCEEDED: frozenset({PurchaseState.ENTITLEMENT_RECORDED, PurchaseState.FAILED}),
    PurchaseState.ENTITLEMENT_RECORDED: frozenset({PurchaseState.UNLOCKED, PurchaseState.FAILED}),
    PurchaseState.UNLOCKED: frozenset(),
    PurchaseState.FAILED: frozenset(),
}


class FailureReason(str, Enum):
    """Why an attempt ended in ``failed``."""

    VALIDATION_FAILED = "validation_failed"
    LISTING_NOT_FOUND = "listing_not_found"
    ORDER_CREATION_FAILED = "order_creation_failed"
    PAYMENT_ABORTED = "payment_aborted"
    CONFIRMATION_REJECTED = "confirmation_rejected"
    PAYMENT_RECORDED_BUT_NOT_SAVED = "payment_recorded_but_not_saved"
    RECORDED_BUT_ASSET_UNAVAILABLE = "recorded_but_asset_unavailable"
    PAYMENT_UNVERIFIED = "payment_unverified"

    @property
    def payment_captured(self) -> bool:
        """Money may have moved for this attempt."""

        return self in {
            FailureReason.PAYMENT_RECORDED_BUT_NOT_SAVED,
            FailureReason.RECORDED_BUT_ASSET_UNAVAILABLE,
            FailureReason.PAYMENT_UNVERIFIED,
        }

    @property
    def requires_reconciliation(self) -> bool:
        """A charge exists without an entitlement; a retry will not fix it."""

        return self in {FailureReason.PAYMENT_RECORDED_BUT_NOT_SAVED, FailureReason.PAYMENT_UNVERIFIED}


_REASON_STATUS = {
    FailureReason.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    FailureReason.LISTING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.ORDER_CREATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    FailureReason.PAYMENT_ABORTED: status.HTTP_409_CONFLICT,
    FailureReason.CONFIRMATION_REJECTED: status.HTTP_400_BAD_REQUEST,
    FailureReason.PAYMENT_RECORDED_BUT_NOT_SAVED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    FailureReason.RECORDED_BUT_ASSET_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureReason.PAYMENT_UNVERIFIED: status.HTTP_502_BAD_GATEWAY,
}

_REASON_MESSAGES = {
    FailureReason.PAYMENT_RECORDED_BUT_NOT_SAVED: "Payment received but the purchase could not be saved",
    FailureReason.RECORDED_BUT_ASSET_UNAVAILABLE: "Payment recorded, but the file could not be opened",
    FailureReason.PAYMENT_ABORTED: "Payment was not completed",
    FailureReason.PAYMENT_UNVERIFIED: "Payment reported but could not be verified",
}


class IllegalTransition(RuntimeError):
    """Raised when a workflow step is invoked from the wrong state."""


@dataclass(frozen=True)
class PurchaseFailure:
    reason: FailureReason
    error: MarketplaceError

    @property
    def message(self) -> str:
        prefix = _REASON_MESSAGES.get(self.reason)
        return f"{prefix}: {self.error.message}" if prefix else self.error.message

    def to_error(self) -> "PurchaseWorkflowError":
        return PurchaseWorkflowError(self)


class PurchaseWorkflowError(MarketplaceError):
    """A collaborator error augmented with the workflow step that failed."""

    def __init__(self, failure: PurchaseFailure) -> None:
        super().__init__(
            failure.message,
            detail={
                "reason": failure.reason.value,
                "cause": failure.error.code,
                "requiresReconciliation": failure.reason.requires_reconciliation,
            },
        )
        self.failure = failure
        self.code = failure.reason.value
        if failure.reason.payment_captured:
            self.status_code = _REASON_STATUS[failure.reason]
        else:
            self.status_code = failure.error.status_code or _REASON_STATUS[failure.reason]


@dataclass(frozen=True)
class StateTransition:
    from_state: PurchaseState
    to_state: PurchaseState
    at: datetime


@dataclass
class PurchaseAttempt:
    """One user-initiated purchase of one listing. Never reused."""

    user_id: str
    listing_id: str
    attempt_id: str = field(default_factory=lambda: f"pa_{uuid4().hex}")
    state: PurchaseState = PurchaseState.IDLE
    listing: Optional[Listing] = None
    order: Optional[OrderIntent] = None
    confirmation: Optional[PaymentConfirmation] = None
    reported_payment_id: Optional[str] = None
    entitlement: Optional[Entitlement] = None
    retrieval_url: Optional[str] = None
    failure: Optional[PurchaseFailure] = None
    transitions: List[StateTransition] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def payment_id(self) -> Optional[str]:
        if self.confirmation is not None:
            return self.confirmation.payment_id
        return self.reported_payment_id

    @property
    def succeeded(self) -> bool:
        return self.state == PurchaseState.UNLOCKED

    @property
    def visited_states(self) -> List[PurchaseState]:
        return [PurchaseState.IDLE] + [transition.to_state for transition in self.transitions]

    def move_to(self, new_state: PurchaseState, *, at: Optional[datetime] = None) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise IllegalTransition(f"Cannot move purchase from {self.state.value} to {new_state.value}")
        self.transitions.append(
            StateTransition(
                from_state=self.state,
                to_state=new_state,
                at=at or datetime.now(timezone.utc),
            )
        )
        self.state = new_state

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure.to_error()


__all__ = [
    "ALLOWED_TRANSITIONS",
    "FailureReason",
    "IllegalTransition",
    "PurchaseAttempt",
    "PurchaseFailure",
    "PurchaseState",
    "PurchaseWorkflowError",
    "StateTransition",
    "TERMINAL_STATES",
]
