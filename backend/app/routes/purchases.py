"""API route recording a completed purchase."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..errors import MarketplaceError, ValidationFailed
from ..payments import PaymentConfirmation
from ..schemas.purchases import RecordPurchaseRequest, RecordPurchaseResponse
from ..services import marketplace
from .dependencies import get_current_user

logger = logging.getLogger("purchases")

router = APIRouter(prefix="/api", tags=["purchases"])


def _verify_signature(payload: RecordPurchaseRequest) -> None:
    if not payload.order_id or not payload.signature:
        raise ValidationFailed("orderId and signature are required").to_http_exception()
    confirmation = PaymentConfirmation(
        payment_id=payload.payment_id,
        order_id=payload.order_id,
        signature=payload.signature,
    )
    if not marketplace.get_signature_verifier().verify(confirmation):
        raise ValidationFailed("Payment signature is invalid").to_http_exception()


@router.post("/record-purchase", response_model=RecordPurchaseResponse)
def record_purchase(
    payload: RecordPurchaseRequest,
    *,
    current_user=Depends(get_current_user),
) -> RecordPurchaseResponse:
    user_id = (payload.user_id or "").strip()
    note_id = (payload.note_id or "").strip()
    payment_id = (payload.payment_id or "").strip()
    if not user_id or not note_id or not payment_id:
        raise ValidationFailed("userId, noteId, and paymentId required").to_http_exception()

    if user_id != str(current_user.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Cannot record a purchase for another user", "code": "forbidden"},
        )

    if marketplace.get_config().payments.require_signature:
        _verify_signature(payload)
    else:
        # TODO: require a provider signature (or a server-to-server webhook) before writing entitlements.
        logger.debug("Recording client-confirmed payment %s without signature check", payment_id)

    recorder = marketplace.get_purchase_recorder()
    try:
        recorder.record_purchase(user_id, note_id, payment_id)
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return RecordPurchaseResponse(success=True)
