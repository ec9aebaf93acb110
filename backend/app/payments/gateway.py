"""Razorpay integration used to create and look up orders."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError

from ..config import PaymentConfig, require_payment_credentials
from ..errors import ProviderFailed

logger = logging.getLogger("payments")

_PROVIDER_ERRORS = (BadRequestError, GatewayError, ServerError)


class PaymentGateway(Protocol):
    """External payment processor integration."""

    def create_order(
        self,
        *,
        amount: int,
        currency: str,
        notes: Dict[str, str],
        receipt: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a provider order for ``amount`` minor units."""

    def fetch_order(self, order_id: str) -> Dict[str, Any]:
        """Return the provider's representation of an existing order."""


def build_razorpay_client(config: PaymentConfig) -> razorpay.Client:
    """Return an authenticated SDK client for ``config``."""

    require_payment_credentials(config)
    options: Dict[str, Any] = {}
    if config.api_url:
        options["base_url"] = config.api_url
    client = razorpay.Client(auth=(config.key_id, config.key_secret), **options)
    client.set_app_details({"title": "study-notes-marketplace", "version": "0.1.0"})
    return client


class RazorpayGateway:
    """Orders API access through the Razorpay SDK client."""

    def __init__(self, client: razorpay.Client, *, timeout_seconds: float = 10.0) -> None:
        self._client = client
        self._timeout = timeout_seconds

    @classmethod
    def from_config(cls, config: PaymentConfig, client: Optional[razorpay.Client] = None) -> "RazorpayGateway":
        if client is None:
            client = build_razorpay_client(config)
        return cls(client, timeout_seconds=config.timeout_seconds)

    def create_order(
        self,
        *,
        amount: int,
        currency: str,
        notes: Dict[str, str],
        receipt: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "payment_capture": 1,
            "notes": dict(notes),
        }
        if receipt:
            payload["receipt"] = receipt
        return self._call("create", lambda: self._client.order.create(data=payload, timeout=self._timeout))

    def fetch_order(self, order_id: str) -> Dict[str, Any]:
        return self._call("fetch", lambda: self._client.order.fetch(order_id, timeout=self._timeout))

    def _call(self, action: str, operation) -> Dict[str, Any]:
        try:
            response = operation()
        except _PROVIDER_ERRORS as exc:
            logger.warning(
                "Payment provider rejected order %s",
                action,
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            raise ProviderFailed(str(exc) or "Payment provider rejected the request") from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Payment provider unreachable", extra={"action": action, "error": str(exc)})
            raise ProviderFailed(f"Payment provider unreachable: {exc}") from exc

        if not isinstance(response, dict):
            raise ProviderFailed("Payment provider returned an unexpected response")
        return response


__all__ = ["PaymentGateway", "RazorpayGateway", "build_razorpay_client"]
