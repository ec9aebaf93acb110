"""Unit tests for order creation against the payment provider."""
from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
import razorpay
import requests

from backend.app.config import load_payment_config
from backend.app.errors import OrderCreationFailed, ProviderFailed, ValidationFailed
from backend.app.payments import OrderService, RazorpayGateway, build_razorpay_client, parse_major_amount
from backend.app.purchases import PurchaseAuditEvent, PurchaseAuditEventType


class RecordingGateway:
    def __init__(self, *, error: Optional[Exception] = None) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.error = error

    def create_order(self, *, amount: int, currency: str, notes: Dict[str, str], receipt: Optional[str] = None):
        self.calls.append({"amount": amount, "currency": currency, "notes": notes})
        if self.error is not None:
            raise self.error
        return {
            "id": "order_test_1",
            "entity": "order",
            "amount": amount,
            "currency": currency,
            "status": "created",
            "notes": notes,
            "created_at": 1700000000,
        }

    def fetch_order(self, order_id: str):
        return {"id": order_id, "amount": 100, "currency": "INR", "notes": []}


class RecordingEventLogger:
    def __init__(self) -> None:
        self.events: List[PurchaseAuditEvent] = []

    def log(self, event: PurchaseAuditEvent) -> None:
        self.events.append(event)


def test_create_order_converts_major_units_and_tags_listing():
    gateway = RecordingGateway()
    event_logger = RecordingEventLogger()
    service = OrderService(gateway=gateway, event_logger=event_logger)

    order = service.create_order(499, "note-1")

    assert gateway.calls == [{"amount": 49900, "currency": "INR", "notes": {"noteId": "note-1"}}]
    assert order.order_id == "order_test_1"
    assert order.amount == 49900
    assert order.currency == "INR"
    assert order.listing_id == "note-1"
    assert order.created_at is not None
    assert [event.event_type for event in event_logger.events] == [PurchaseAuditEventType.ORDER_CREATED]


def test_create_order_rounds_fractional_amounts_to_minor_units():
    gateway = RecordingGateway()
    service = OrderService(gateway=gateway)

    order = service.create_order("199.995", "note-1")

    assert gateway.calls[0]["amount"] == 20000
    assert order.amount == 20000


def test_provider_payload_is_returned_unchanged():
    service = OrderService(gateway=RecordingGateway())

    payload = service.create_order(Decimal("10"), "note-9").to_provider_payload()

    assert payload["id"] == "order_test_1"
    assert payload["entity"] == "order"
    assert payload["amount"] == 1000
    assert payload["notes"] == {"noteId": "note-9"}


@pytest.mark.parametrize("amount", [None, 0, -5, "abc", "NaN", True])
def test_invalid_amount_rejected_before_provider_call(amount):
    gateway = RecordingGateway()
    service = OrderService(gateway=gateway)

    with pytest.raises(ValidationFailed):
        service.create_order(amount, "note-1")

    assert gateway.calls == []


def test_amount_below_one_minor_unit_rejected():
    gateway = RecordingGateway()
    service = OrderService(gateway=gateway)

    with pytest.raises(ValidationFailed):
        service.create_order("0.001", "note-1")

    assert gateway.calls == []


def test_blank_listing_rejected_before_provider_call():
    gateway = RecordingGateway()
    service = OrderService(gateway=gateway)

    with pytest.raises(ValidationFailed):
        service.create_order(499, "   ")

    assert gateway.calls == []


def test_provider_failure_surfaces_as_order_creation_failed():
    gateway = RecordingGateway(error=ProviderFailed("Authentication failed"))
    event_logger = RecordingEventLogger()
    service = OrderService(gateway=gateway, event_logger=event_logger)

    with pytest.raises(OrderCreationFailed) as excinfo:
        service.create_order(499, "note-1")

    assert excinfo.value.message == "Authentication failed"
    assert excinfo.value.to_http_exception().status_code == 502
    assert len(gateway.calls) == 1
    assert event_logger.events == []


def test_fetch_order_treats_list_notes_as_empty():
    service = OrderService(gateway=RecordingGateway())

    order = service.fetch_order("order_x")

    assert order.order_id == "order_x"
    assert order.notes == {}
    assert order.listing_id is None


def test_parse_major_amount_accepts_numeric_strings():
    assert parse_major_amount(" 12.50 ") == Decimal("12.50")


class FakeOrderApi:
    def __init__(self, *, error: Optional[Exception] = None) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.error = error

    def create(self, data=None, **options):
        self.calls.append({"action": "create", "data": data, "options": options})
        if self.error is not None:
            raise self.error
        return {"id": "order_live", "amount": data["amount"], "currency": data["currency"], "notes": data["notes"]}

    def fetch(self, order_id, **options):
        self.calls.append({"action": "fetch", "order_id": order_id, "options": options})
        if self.error is not None:
            raise self.error
        return {"id": order_id, "amount": 49900, "currency": "INR", "notes": {"noteId": "note-1"}}


def _gateway(error: Optional[Exception] = None) -> RazorpayGateway:
    return RazorpayGateway(SimpleNamespace(order=FakeOrderApi(error=error)), timeout_seconds=3)


def test_razorpay_gateway_creates_captured_order_through_sdk():
    gateway = _gateway()

    payload = gateway.create_order(amount=49900, currency="INR", notes={"noteId": "note-1"})

    assert payload["id"] == "order_live"
    call = gateway._client.order.calls[0]
    assert call["data"] == {
        "amount": 49900,
        "currency": "INR",
        "payment_capture": 1,
        "notes": {"noteId": "note-1"},
    }
    assert call["options"] == {"timeout": 3}


def test_razorpay_gateway_fetches_order_by_id():
    gateway = _gateway()

    payload = gateway.fetch_order("order_live")

    assert payload["notes"] == {"noteId": "note-1"}
    assert gateway._client.order.calls[0]["order_id"] == "order_live"


@pytest.mark.parametrize(
    "error",
    [
        razorpay.errors.BadRequestError("Authentication failed"),
        razorpay.errors.ServerError("Authentication failed"),
        razorpay.errors.GatewayError("Authentication failed"),
    ],
)
def test_razorpay_gateway_maps_sdk_errors(error):
    gateway = _gateway(error)

    with pytest.raises(ProviderFailed) as excinfo:
        gateway.create_order(amount=100, currency="INR", notes={})

    assert excinfo.value.message == "Authentication failed"
    assert excinfo.value.__cause__ is error


def test_razorpay_gateway_reports_unreachable_provider():
    gateway = _gateway(requests.exceptions.ConnectionError("connection refused"))

    with pytest.raises(ProviderFailed) as excinfo:
        gateway.fetch_order("order_1")

    assert "unreachable" in excinfo.value.message


def test_razorpay_gateway_from_config_builds_sdk_client():
    config = load_payment_config({"RAZORPAY_KEY_ID": "rzp_test", "RAZORPAY_KEY_SECRET": "secret"})

    client = build_razorpay_client(config)

    assert isinstance(client, razorpay.Client)
    assert client.auth == ("rzp_test", "secret")
    assert isinstance(RazorpayGateway.from_config(config, client=client), RazorpayGateway)
