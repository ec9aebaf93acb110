"""Purchase workflow: order, provider checkout, recording and unlock."""

from .models import (
    ALLOWED_TRANSITIONS,
    FailureReason,
    IllegalTransition,
    PurchaseAttempt,
    PurchaseFailure,
    PurchaseState,
    PurchaseWorkflowError,
    StateTransition,
    TERMINAL_STATES,
)
from .orchestrator import CheckoutResult, CheckoutUI, PurchaseOrchestrator

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CheckoutResult",
    "CheckoutUI",
    "FailureReason",
    "IllegalTransition",
    "PurchaseAttempt",
    "PurchaseFailure",
    "PurchaseOrchestrator",
    "PurchaseState",
    "PurchaseWorkflowError",
    "StateTransition",
    "TERMINAL_STATES",
]
