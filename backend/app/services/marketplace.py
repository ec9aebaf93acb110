"""Application wiring for the marketplace services."""
from __future__ import annotations

import logging
from functools import lru_cache

import razorpay

from ..catalog import CatalogService
from ..catalog.repository import PostgresListingRepository
from ..checkout import PurchaseOrchestrator
from ..config import MarketplaceConfig, load_config
from ..payments import OrderService, RazorpayGateway, RazorpaySignatureVerifier, build_razorpay_client
from ..purchases import AccessGate, PurchaseAuditEvent, PurchaseAuditEventType, PurchaseEventLogger, PurchaseRecorder
from ..purchases.repository import PostgresEntitlementRepository
from ..storage import SupabaseBucketStorage

logger = logging.getLogger("purchases")

_WARNING_EVENTS = {
    PurchaseAuditEventType.PAYMENT_ABORTED,
    PurchaseAuditEventType.CONFIRMATION_REJECTED,
    PurchaseAuditEventType.PURCHASE_FAILED,
}


class LoggingPurchaseEventLogger(PurchaseEventLogger):
    """Event logger forwarding purchase audit events to logging."""

    def log(self, event: PurchaseAuditEvent) -> None:
        if event.event_type == PurchaseAuditEventType.RECONCILIATION_REQUIRED:
            level = logging.CRITICAL
        elif event.event_type in _WARNING_EVENTS:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "Purchase event %s user=%s listing=%s order=%s payment=%s metadata=%s",
            event.event_type.value,
            event.user_id,
            event.listing_id,
            event.order_id,
            event.payment_id,
            event.metadata,
        )


@lru_cache(maxsize=1)
def get_config() -> MarketplaceConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_event_logger() -> PurchaseEventLogger:
    return LoggingPurchaseEventLogger()


@lru_cache(maxsize=1)
def get_storage() -> SupabaseBucketStorage:
    return SupabaseBucketStorage.from_config(get_config().storage)


@lru_cache(maxsize=1)
def get_catalog_service() -> CatalogService:
    return CatalogService(repository=PostgresListingRepository(), storage=get_storage())


@lru_cache(maxsize=1)
def get_payment_client() -> razorpay.Client:
    return build_razorpay_client(get_config().payments)


@lru_cache(maxsize=1)
def get_order_service() -> OrderService:
    payments = get_config().payments
    return OrderService(
        gateway=RazorpayGateway.from_config(payments, client=get_payment_client()),
        currency=payments.currency,
        event_logger=get_event_logger(),
    )


@lru_cache(maxsize=1)
def get_purchase_recorder() -> PurchaseRecorder:
    return PurchaseRecorder(PostgresEntitlementRepository(), event_logger=get_event_logger())


@lru_cache(maxsize=1)
def get_access_gate() -> AccessGate:
    return AccessGate(PostgresEntitlementRepository(), PostgresListingRepository(), get_storage())


@lru_cache(maxsize=1)
def get_signature_verifier() -> RazorpaySignatureVerifier:
    return RazorpaySignatureVerifier(get_payment_client())


@lru_cache(maxsize=1)
def get_purchase_orchestrator() -> PurchaseOrchestrator:
    payments = get_config().payments
    return PurchaseOrchestrator(
        listings=PostgresListingRepository(),
        order_service=get_order_service(),
        recorder=get_purchase_recorder(),
        access_gate=get_access_gate(),
        signature_verifier=get_signature_verifier(),
        require_signature=payments.require_signature,
        event_logger=get_event_logger(),
    )


__all__ = [
    "LoggingPurchaseEventLogger",
    "get_access_gate",
    "get_catalog_service",
    "get_config",
    "get_event_logger",
    "get_order_service",
    "get_payment_client",
    "get_purchase_orchestrator",
    "get_purchase_recorder",
    "get_signature_verifier",
    "get_storage",
]
