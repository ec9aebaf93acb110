"""Purchase orchestrator sequencing order, payment, recording and unlock."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Union

from ..catalog.models import Listing
from ..catalog.service import ListingRepository
from ..errors import (
    AssetUnavailable,
    ListingNotFound,
    MarketplaceError,
    PaymentAborted,
    ValidationFailed,
)
from ..payments.models import CheckoutAborted, OrderIntent, PaymentConfirmation
from ..payments.service import OrderService
from ..payments.signatures import SignatureVerifier
from ..purchases.models import PurchaseAuditEvent, PurchaseAuditEventType
from ..purchases.service import AccessGate, PurchaseEventLogger, PurchaseRecorder
from .models import (
    FailureReason,
    IllegalTransition,
    PurchaseAttempt,
    PurchaseFailure,
    PurchaseState,
)

logger = logging.getLogger("purchases")

CheckoutResult = Union[PaymentConfirmation, CheckoutAborted]


class CheckoutUI(Protocol):
    """Opens the provider's checkout and reports a confirmation or an abort."""

    def open_checkout(self, *, order: OrderIntent, listing: Listing, user_id: str) -> CheckoutResult:
        ...


class _NullEventLogger:
    def log(self, event: PurchaseAuditEvent) -> None:
        return None


_FAILURE_EVENTS = {
    FailureReason.PAYMENT_ABORTED: PurchaseAuditEventType.PAYMENT_ABORTED,
    FailureReason.CONFIRMATION_REJECTED: PurchaseAuditEventType.CONFIRMATION_REJECTED,
    FailureReason.PAYMENT_RECORDED_BUT_NOT_SAVED: PurchaseAuditEventType.RECONCILIATION_REQUIRED,
    FailureReason.PAYMENT_UNVERIFIED: PurchaseAuditEventType.RECONCILIATION_REQUIRED,
}


class PurchaseOrchestrator:
    """Drives a :class:`PurchaseAttempt` through the purchase state machine.

    Every step either advances the attempt or moves it to ``failed`` with a
    :class:`FailureReason` wrapping the collaborator's error. Failures after
    the provider confirmed payment are reported separately from failures
    before it, since those need reconciliation rather than a retry.
    """

    def __init__(
        self,
        *,
        listings: ListingRepository,
        order_service: OrderService,
        recorder: PurchaseRecorder,
        access_gate: AccessGate,
        signature_verifier: Optional[SignatureVerifier] = None,
        require_signature: bool = False,
        event_logger: Optional[PurchaseEventLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if require_signature and signature_verifier is None:
            raise ValueError("require_signature needs a signature_verifier")
        self._listings = listings
        self._order_service = order_service
        self._recorder = recorder
        self._access_gate = access_gate
        self._signature_verifier = signature_verifier
        self._require_signature = require_signature
        self._event_logger = event_logger or _NullEventLogger()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def start(self, user_id: str, listing_id: str) -> PurchaseAttempt:
        """idle → order_requested → awaiting_provider_ui."""

        attempt = PurchaseAttempt(user_id=(user_id or "").strip(), listing_id=(listing_id or "").strip())
        if not self._load_listing(attempt):
            return attempt

        self._advance(attempt, PurchaseState.ORDER_REQUESTED)
        try:
            order = self._order_service.create_order(attempt.listing.price, attempt.listing_id)
        except ValidationFailed as exc:
            return self._fail(attempt, FailureReason.VALIDATION_FAILED, exc)
        except MarketplaceError as exc:
            return self._fail(attempt, FailureReason.ORDER_CREATION_FAILED, exc)

        attempt.order = order
        self._advance(attempt, PurchaseState.AWAITING_PROVIDER_UI)
        return attempt

    def resume(
        self,
        user_id: str,
        listing_id: str,
        order_id: str,
        payment_id: Optional[str] = None,
    ) -> PurchaseAttempt:
        """Rebuild an attempt awaiting the provider from an existing order.

        Used when the checkout UI runs in the browser and the confirmation
        arrives on a later request. The order must have been created for this
        listing at the listing's price.

        When the caller already holds a provider ``payment_id`` the charge may
        exist, so a listing or order that cannot be looked up fails with
        ``payment_unverified`` and needs reconciliation. Orders that do not
        match the listing are still rejected.
        """

        attempt = PurchaseAttempt(user_id=(user_id or "").strip(), listing_id=(listing_id or "").strip())
        attempt.reported_payment_id = (payment_id or "").strip() or None
        unverified = FailureReason.PAYMENT_UNVERIFIED if attempt.reported_payment_id else None
        if not self._load_listing(attempt, lookup_failure=unverified):
            return attempt

        self._advance(attempt, PurchaseState.ORDER_REQUESTED)
        try:
            order = self._order_service.fetch_order(order_id)
        except ValidationFailed as exc:
            return self._fail(attempt, FailureReason.VALIDATION_FAILED, exc)
        except MarketplaceError as exc:
            return self._fail(attempt, unverified or FailureReason.CONFIRMATION_REJECTED, exc)

        if order.listing_id != attempt.listing_id:
            return self._fail(
                attempt,
                FailureReason.CONFIRMATION_REJECTED,
                ValidationFailed(f"Order {order.order_id} was not created for this listing"),
            )
        if order.amount != attempt.listing.price_minor_units:
            return self._fail(
                attempt,
                FailureReason.CONFIRMATION_REJECTED,
                ValidationFailed(f"Order {order.order_id} amount does not match the listing price"),
            )

        attempt.order = order
        self._advance(attempt, PurchaseState.AWAITING_PROVIDER_UI)
        return attempt

    def confirm(self, attempt: PurchaseAttempt, confirmation: PaymentConfirmation) -> PurchaseAttempt:
        """awaiting_provider_ui → provider_succeeded → entitlement_recorded → unlocked."""

        self._expect(attempt, PurchaseState.AWAITING_PROVIDER_UI)
        rejection = self._check_confirmation(attempt, confirmation)
        if rejection is not None:
            return self._fail(attempt, FailureReason.CONFIRMATION_REJECTED, rejection)

        attempt.confirmation = confirmation
        self._advance(attempt, PurchaseState.PROVIDER_SUCCEEDED)

        try:
            attempt.entitlement = self._recorder.record_purchase(
                attempt.user_id, attempt.listing_id, confirmation.payment_id
            )
        except MarketplaceError as exc:
            return self._fail(attempt, FailureReason.PAYMENT_RECORDED_BUT_NOT_SAVED, exc)
        self._advance(attempt, PurchaseState.ENTITLEMENT_RECORDED)

        try:
            decision = self._access_gate.resolve_access(attempt.user_id, attempt.listing_id)
        except MarketplaceError as exc:
            return self._fail(attempt, FailureReason.RECORDED_BUT_ASSET_UNAVAILABLE, exc)
        if not decision.is_unlocked:
            return self._fail(
                attempt,
                FailureReason.RECORDED_BUT_ASSET_UNAVAILABLE,
                AssetUnavailable("Listing is still locked after recording the purchase"),
            )

        attempt.retrieval_url = decision.retrieval_url
        self._advance(attempt, PurchaseState.UNLOCKED)
        self._emit(attempt, PurchaseAuditEventType.ACCESS_GRANTED)
        logger.info(
            "Purchase unlocked",
            extra={
                "user_id": attempt.user_id,
                "listing_id": attempt.listing_id,
                "order_id": attempt.order.order_id if attempt.order else None,
                "payment_id": confirmation.payment_id,
            },
        )
        return attempt

    def abort(self, attempt: PurchaseAttempt, aborted: Optional[CheckoutAborted] = None) -> PurchaseAttempt:
        """awaiting_provider_ui → failed(payment_aborted). Nothing is written."""

        self._expect(attempt, PurchaseState.AWAITING_PROVIDER_UI)
        aborted = aborted or CheckoutAborted()
        detail = {"providerCode": aborted.provider_code} if aborted.provider_code else None
        return self._fail(attempt, FailureReason.PAYMENT_ABORTED, PaymentAborted(aborted.reason, detail=detail))

    def purchase(self, user_id: str, listing_id: str, checkout_ui: CheckoutUI) -> PurchaseAttempt:
        """Run a full attempt, handing the order to ``checkout_ui``."""

        attempt = self.start(user_id, listing_id)
        if attempt.is_terminal:
            return attempt

        try:
            result = checkout_ui.open_checkout(order=attempt.order, listing=attempt.listing, user_id=attempt.user_id)
        except MarketplaceError as exc:
            return self.abort(attempt, CheckoutAborted(reason=exc.message, provider_code=exc.code))

        if isinstance(result, PaymentConfirmation):
            return self.confirm(attempt, result)
        if isinstance(result, CheckoutAborted):
            return self.abort(attempt, result)
        raise TypeError(f"Unsupported checkout result: {type(result).__name__}")

    def _load_listing(self, attempt: PurchaseAttempt, lookup_failure: Optional[FailureReason] = None) -> bool:
        if not attempt.user_id or not attempt.listing_id:
            self._fail(attempt, FailureReason.VALIDATION_FAILED, ValidationFailed("userId and noteId are required"))
            return False
        try:
            listing = self._listings.get_listing(attempt.listing_id)
        except MarketplaceError as exc:
            self._fail(attempt, lookup_failure or FailureReason.ORDER_CREATION_FAILED, exc)
            return False
        if listing is None:
            self._fail(
                attempt,
                lookup_failure or FailureReason.LISTING_NOT_FOUND,
                ListingNotFound(f"Listing {attempt.listing_id!r} does not exist"),
            )
            return False
        attempt.listing = listing
        return True

    def _check_confirmation(
        self,
        attempt: PurchaseAttempt,
        confirmation: PaymentConfirmation,
    ) -> Optional[MarketplaceError]:
        if attempt.order is None or confirmation.order_id != attempt.order.order_id:
            return ValidationFailed("Payment confirmation does not match the order")
        if self._signature_verifier is None:
            return None
        if confirmation.signature or self._require_signature:
            if not self._signature_verifier.verify(confirmation):
                return ValidationFailed("Payment signature is invalid")
        return None

    def _expect(self, attempt: PurchaseAttempt, state: PurchaseState) -> None:
        if attempt.state != state:
            raise IllegalTransition(f"Purchase is {attempt.state.value}, expected {state.value}")

    def _advance(self, attempt: PurchaseAttempt, state: PurchaseState) -> None:
        attempt.move_to(state, at=self._clock())

    def _fail(self, attempt: PurchaseAttempt, reason: FailureReason, error: MarketplaceError) -> PurchaseAttempt:
        attempt.failure = PurchaseFailure(reason=reason, error=error)
        attempt.move_to(PurchaseState.FAILED, at=self._clock())
        event_type = _FAILURE_EVENTS.get(reason, PurchaseAuditEventType.PURCHASE_FAILED)
        self._emit(attempt, event_type, metadata={"reason": reason.value, "error": error.message})

        log = logger.error if reason.payment_captured else logger.warning
        log(
            "Purchase failed: %s",
            reason.value,
            extra={
                "user_id": attempt.user_id,
                "listing_id": attempt.listing_id,
                "order_id": attempt.order.order_id if attempt.order else None,
                "payment_id": attempt.payment_id,
                "error": error.message,
            },
        )
        return attempt

    def _emit(self, attempt: PurchaseAttempt, event_type: PurchaseAuditEventType, metadata=None) -> None:
        self._event_logger.log(
            PurchaseAuditEvent(
                event_type=event_type,
                user_id=attempt.user_id or None,
                listing_id=attempt.listing_id or None,
                order_id=attempt.order.order_id if attempt.order else None,
                payment_id=attempt.payment_id,
                metadata=metadata or {},
                occurred_at=self._clock(),
            )
        )


__all__ = ["CheckoutResult", "CheckoutUI", "PurchaseOrchestrator"]
