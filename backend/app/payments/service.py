"""Order service creating provider orders for catalog listings."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ..catalog.models import to_minor_units
from ..errors import OrderCreationFailed, ProviderFailed, ValidationFailed
from ..purchases.models import PurchaseAuditEvent, PurchaseAuditEventType
from ..purchases.service import PurchaseEventLogger
from .gateway import PaymentGateway
from .models import LISTING_NOTE_KEY, OrderIntent

logger = logging.getLogger("payments")


def parse_major_amount(amount: Any) -> Decimal:
    """Coerce a major-unit amount into a positive ``Decimal``."""

    if amount is None or isinstance(amount, bool):
        raise ValidationFailed("amount is required")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationFailed(f"amount must be a number, got {amount!r}") from exc
    if not value.is_finite():
        raise ValidationFailed("amount must be a finite number")
    if value <= 0:
        raise ValidationFailed("amount must be greater than zero")
    return value


@dataclass
class OrderService:
    """Creates one provider order per checkout attempt. Never retries."""

    gateway: PaymentGateway
    currency: str = "INR"
    event_logger: Optional[PurchaseEventLogger] = None

    def create_order(self, amount: Any, listing_id: str) -> OrderIntent:
        major = parse_major_amount(amount)
        listing_id = (listing_id or "").strip()
        if not listing_id:
            raise ValidationFailed("noteId is required")
        minor = to_minor_units(major)
        if minor < 1:
            raise ValidationFailed("amount is smaller than the currency's minor unit")

        try:
            payload = self.gateway.create_order(
                amount=minor,
                currency=self.currency,
                notes={LISTING_NOTE_KEY: listing_id},
            )
        except ProviderFailed as exc:
            logger.error(
                "Order creation failed",
                extra={"listing_id": listing_id, "amount_minor": minor, "error": exc.message},
            )
            raise OrderCreationFailed(exc.message) from exc

        order = self._to_intent(payload, failure=OrderCreationFailed)
        logger.info(
            "Order created",
            extra={"order_id": order.order_id, "listing_id": listing_id, "amount_minor": order.amount},
        )
        if self.event_logger is not None:
            self.event_logger.log(
                PurchaseAuditEvent(
                    event_type=PurchaseAuditEventType.ORDER_CREATED,
                    listing_id=listing_id,
                    order_id=order.order_id,
                    metadata={"amount": str(order.amount), "currency": order.currency},
                )
            )
        return order

    def fetch_order(self, order_id: str) -> OrderIntent:
        order_id = (order_id or "").strip()
        if not order_id:
            raise ValidationFailed("orderId is required")
        payload = self.gateway.fetch_order(order_id)
        return self._to_intent(payload, failure=ProviderFailed)

    def _to_intent(self, payload: Mapping[str, Any], *, failure: type) -> OrderIntent:
        try:
            return OrderIntent.from_provider(payload)
        except (ValidationError, TypeError, ValueError) as exc:
            raise failure("Payment provider returned an incomplete order") from exc


__all__ = ["OrderService", "parse_major_amount"]
