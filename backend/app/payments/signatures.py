"""Verification of provider-signed payment confirmations."""
from __future__ import annotations

import logging
from typing import Protocol

import razorpay
from razorpay.errors import SignatureVerificationError

from .models import PaymentConfirmation

logger = logging.getLogger("payments")


class SignatureVerifier(Protocol):
    """Protocol describing confirmation signature checks."""

    def verify(self, confirmation: PaymentConfirmation) -> bool:
        ...


class RazorpaySignatureVerifier:
    """Checks checkout signatures with the SDK's payment signature utility."""

    def __init__(self, client: razorpay.Client) -> None:
        self._client = client

    def verify(self, confirmation: PaymentConfirmation) -> bool:
        if not confirmation.signature:
            return False
        try:
            result = self._client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": confirmation.order_id,
                    "razorpay_payment_id": confirmation.payment_id,
                    "razorpay_signature": confirmation.signature.strip(),
                }
            )
        except SignatureVerificationError:
            logger.warning(
                "Payment signature mismatch",
                extra={"order_id": confirmation.order_id, "payment_id": confirmation.payment_id},
            )
            return False
        return result is not False


__all__ = ["RazorpaySignatureVerifier", "SignatureVerifier"]
