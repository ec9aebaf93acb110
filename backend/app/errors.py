"""Error taxonomy shared by the marketplace services and routes."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""


class MarketplaceError(Exception):
    """Represents an actionable failure surfaced to API callers."""

    code = "marketplace_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, detail: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = dict(detail or {})

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        body.update(self.detail)
        return body

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class ValidationFailed(MarketplaceError):
    code = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST


class ListingNotFound(MarketplaceError):
    code = "listing_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ProviderFailed(MarketplaceError):
    """The payment provider was unreachable or rejected the request."""

    code = "provider_failed"
    status_code = status.HTTP_502_BAD_GATEWAY


class OrderCreationFailed(ProviderFailed):
    code = "order_creation_failed"


class PersistenceFailed(MarketplaceError):
    code = "persistence_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AssetUnavailable(MarketplaceError):
    """A retrieval URL could not be derived for a listing asset."""

    code = "asset_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PaymentAborted(MarketplaceError):
    code = "payment_aborted"
    status_code = status.HTTP_409_CONFLICT


class StorageFailed(MarketplaceError):
    """Object storage rejected an upload or removal."""

    code = "storage_failed"
    status_code = status.HTTP_502_BAD_GATEWAY


__all__ = [
    "AssetUnavailable",
    "ConfigurationError",
    "ListingNotFound",
    "MarketplaceError",
    "OrderCreationFailed",
    "PaymentAborted",
    "PersistenceFailed",
    "ProviderFailed",
    "StorageFailed",
    "ValidationFailed",
]
