"""API routes driving the purchase workflow from the browser.

The provider widget runs client side, so one attempt spans several requests:
``/order`` starts it, and ``/confirm`` or ``/abort`` rebuild it from the
provider's order before finishing it. Nothing is kept between requests.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..errors import ValidationFailed
from ..payments import CheckoutAborted, PaymentConfirmation
from ..schemas.checkout import (
    CheckoutAbortRequest,
    CheckoutConfirmRequest,
    CheckoutResultResponse,
    CheckoutStartResponse,
)
from ..services import marketplace
from .dependencies import get_current_user

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("/{note_id}/order", response_model=CheckoutStartResponse)
def start_checkout(note_id: str, *, current_user=Depends(get_current_user)) -> CheckoutStartResponse:
    orchestrator = marketplace.get_purchase_orchestrator()
    attempt = orchestrator.start(str(current_user.user_id), note_id)
    if attempt.failure is not None:
        raise attempt.failure.to_error().to_http_exception()
    return CheckoutStartResponse.from_attempt(attempt, key_id=marketplace.get_config().payments.key_id)


@router.post("/{note_id}/confirm", response_model=CheckoutResultResponse)
def confirm_checkout(
    note_id: str,
    payload: CheckoutConfirmRequest,
    *,
    current_user=Depends(get_current_user),
) -> CheckoutResultResponse:
    if not (payload.order_id or "").strip() or not (payload.payment_id or "").strip():
        raise ValidationFailed("orderId and paymentId are required").to_http_exception()

    orchestrator = marketplace.get_purchase_orchestrator()
    attempt = orchestrator.resume(
        str(current_user.user_id),
        note_id,
        payload.order_id.strip(),
        payment_id=payload.payment_id.strip(),
    )
    if attempt.failure is None:
        confirmation = PaymentConfirmation(
            payment_id=payload.payment_id.strip(),
            order_id=payload.order_id.strip(),
            signature=payload.signature,
        )
        attempt = orchestrator.confirm(attempt, confirmation)
    if attempt.failure is not None:
        raise attempt.failure.to_error().to_http_exception()
    return CheckoutResultResponse.from_attempt(attempt)


@router.post("/{note_id}/abort", response_model=CheckoutResultResponse)
def abort_checkout(
    note_id: str,
    payload: CheckoutAbortRequest,
    *,
    current_user=Depends(get_current_user),
) -> CheckoutResultResponse:
    if not (payload.order_id or "").strip():
        raise ValidationFailed("orderId is required").to_http_exception()

    orchestrator = marketplace.get_purchase_orchestrator()
    attempt = orchestrator.resume(str(current_user.user_id), note_id, payload.order_id.strip())
    if attempt.failure is not None:
        raise attempt.failure.to_error().to_http_exception()
    aborted = CheckoutAborted(reason=payload.reason or "Checkout was cancelled", provider_code=payload.code)
    attempt = orchestrator.abort(attempt, aborted)
    return CheckoutResultResponse.from_attempt(attempt)
