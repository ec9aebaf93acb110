"""Services recording purchases and gating access to purchased assets."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol, Set

from ..catalog.service import ListingRepository
from ..errors import AssetUnavailable, MarketplaceError, ValidationFailed
from ..storage import AssetStorage
from .models import (
    AccessDecision,
    CatalogEntry,
    Entitlement,
    PurchaseAuditEvent,
    PurchaseAuditEventType,
)


class EntitlementRepository(Protocol):
    """Data access layer for entitlement records."""

    def add_entitlement(self, entitlement: Entitlement) -> bool:
        ...

    def list_listing_ids(self, user_id: str) -> Set[str]:
        ...

    def get_entitlement(self, user_id: str, listing_id: str) -> Optional[Entitlement]:
        ...


class PurchaseEventLogger(Protocol):
    """Captures structured purchase audit events."""

    def log(self, event: PurchaseAuditEvent) -> None:
        ...


class _NullEventLogger:
    def log(self, event: PurchaseAuditEvent) -> None:
        return None


def _require_identifier(value: Optional[str], name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationFailed(f"{name} is required")
    return cleaned


class PurchaseRecorder:
    """Writes one entitlement per accepted payment confirmation.

    The recorder trusts its caller to have received a provider success
    signal; it does not contact the provider itself.
    """

    def __init__(
        self,
        repository: EntitlementRepository,
        *,
        event_logger: Optional[PurchaseEventLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._repository = repository
        self._event_logger = event_logger or _NullEventLogger()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def record_purchase(self, user_id: str, listing_id: str, payment_id: str) -> Entitlement:
        candidate = Entitlement(
            user_id=_require_identifier(user_id, "userId"),
            listing_id=_require_identifier(listing_id, "noteId"),
            payment_id=_require_identifier(payment_id, "paymentId"),
            created_at=self._clock(),
        )

        inserted = self._repository.add_entitlement(candidate)
        event_type = (
            PurchaseAuditEventType.PURCHASE_RECORDED
            if inserted
            else PurchaseAuditEventType.DUPLICATE_PURCHASE_IGNORED
        )
        self._event_logger.log(
            PurchaseAuditEvent(
                event_type=event_type,
                user_id=candidate.user_id,
                listing_id=candidate.listing_id,
                payment_id=candidate.payment_id,
            )
        )
        if inserted:
            return candidate
        # the first payment stays the recorded one
        stored = self._repository.get_entitlement(candidate.user_id, candidate.listing_id)
        return stored or candidate


class AccessGate:
    """Decides locked/unlocked for a user and mints retrieval URLs."""

    def __init__(
        self,
        entitlements: EntitlementRepository,
        listings: ListingRepository,
        storage: AssetStorage,
    ) -> None:
        self._entitlements = entitlements
        self._listings = listings
        self._storage = storage

    def purchased_listing_ids(self, user_id: str) -> Set[str]:
        if not user_id:
            return set()
        return set(self._entitlements.list_listing_ids(user_id))

    def resolve_access(self, user_id: str, listing_id: str) -> AccessDecision:
        if listing_id not in self.purchased_listing_ids(user_id):
            return AccessDecision.locked(listing_id)

        listing = self._listings.get_listing(listing_id)
        if listing is None:
            raise AssetUnavailable(f"Listing {listing_id!r} has no stored asset")
        return AccessDecision.unlocked(listing_id, self._retrieval_url(listing.listing_id, listing.asset_key))

    def annotate_catalog(self, user_id: str) -> List[CatalogEntry]:
        """Return every listing with the user's lock state, newest first."""

        owned = self.purchased_listing_ids(user_id)
        entries: List[CatalogEntry] = []
        for listing in self._listings.list_listings():
            if listing.listing_id in owned:
                decision = AccessDecision.unlocked(
                    listing.listing_id, self._retrieval_url(listing.listing_id, listing.asset_key)
                )
            else:
                decision = AccessDecision.locked(listing.listing_id)
            entries.append(CatalogEntry(listing=listing, access=decision))
        return entries

    def _retrieval_url(self, listing_id: str, asset_key: str) -> str:
        try:
            url = self._storage.public_url(asset_key)
        except AssetUnavailable:
            raise
        except MarketplaceError as exc:
            raise AssetUnavailable(f"Could not resolve file for listing {listing_id!r}: {exc.message}") from exc
        if not url:
            raise AssetUnavailable(f"Could not resolve file for listing {listing_id!r}")
        return url


__all__ = ["AccessGate", "EntitlementRepository", "PurchaseEventLogger", "PurchaseRecorder"]
