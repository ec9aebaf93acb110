"""Entitlement store, purchase recording and the access gate."""

from .models import (
    AccessDecision,
    AccessStatus,
    CatalogEntry,
    Entitlement,
    PurchaseAuditEvent,
    PurchaseAuditEventType,
)
from .service import AccessGate, EntitlementRepository, PurchaseEventLogger, PurchaseRecorder

__all__ = [
    "AccessDecision",
    "AccessGate",
    "AccessStatus",
    "CatalogEntry",
    "Entitlement",
    "EntitlementRepository",
    "PurchaseAuditEvent",
    "PurchaseAuditEventType",
    "PurchaseEventLogger",
    "PurchaseRecorder",
]
