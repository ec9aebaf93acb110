"""Payment provider integration: orders and confirmation checks."""

from .gateway import PaymentGateway, RazorpayGateway, build_razorpay_client
from .models import LISTING_NOTE_KEY, CheckoutAborted, OrderIntent, PaymentConfirmation
from .service import OrderService, parse_major_amount
from .signatures import RazorpaySignatureVerifier, SignatureVerifier

__all__ = [
    "CheckoutAborted",
    "LISTING_NOTE_KEY",
    "OrderIntent",
    "OrderService",
    "PaymentConfirmation",
    "PaymentGateway",
    "RazorpayGateway",
    "RazorpaySignatureVerifier",
    "SignatureVerifier",
    "build_razorpay_client",
    "parse_major_amount",
]
