"""API route creating provider orders for listings."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..errors import MarketplaceError, ValidationFailed
from ..schemas.orders import CreateOrderRequest
from ..services import marketplace
from .dependencies import get_current_user

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/create-order")
def create_order(
    payload: CreateOrderRequest,
    *,
    current_user=Depends(get_current_user),
) -> Dict[str, Any]:
    """Return the provider's order representation for ``amount`` rupees."""

    if payload.amount is None or not (payload.note_id or "").strip():
        raise ValidationFailed("Amount and noteId are required").to_http_exception()

    service = marketplace.get_order_service()
    try:
        order = service.create_order(payload.amount, payload.note_id)
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return order.to_provider_payload()
