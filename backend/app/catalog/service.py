"""Administrative operations on the listing catalog."""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional, Protocol, Sequence

from ..errors import ListingNotFound, MarketplaceError, ValidationFailed
from ..storage import AssetStorage
from .models import Listing, ListingDraft

logger = logging.getLogger("catalog")

ALLOWED_CONTENT_TYPES = frozenset({"application/pdf"})
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ListingRepository(Protocol):
    """Persistence operations required by the catalog service."""

    def insert_listing(self, *, title: str, price: Decimal, asset_key: str) -> Listing:
        ...

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        ...

    def list_listings(self) -> Sequence[Listing]:
        ...

    def delete_listing(self, listing_id: str) -> bool:
        ...


def timestamped_asset_key(filename: str) -> str:
    """Build a storage key of the form ``<epoch millis>-<sanitized filename>``."""

    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    safe = _UNSAFE_FILENAME_CHARS.sub("-", base).strip("-.") or "note.pdf"
    return f"{int(time.time() * 1000)}-{safe}"


@dataclass
class CatalogService:
    """Coordinates listing rows with their backing assets."""

    repository: ListingRepository
    storage: AssetStorage
    key_factory: Callable[[str], str] = field(default=timestamped_asset_key)

    def list_listings(self) -> List[Listing]:
        return list(self.repository.list_listings())

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        if not listing_id:
            return None
        return self.repository.get_listing(listing_id)

    def require_listing(self, listing_id: str) -> Listing:
        listing = self.get_listing(listing_id)
        if listing is None:
            raise ListingNotFound(f"Listing {listing_id!r} does not exist")
        return listing

    def upload_listing(self, draft: ListingDraft, content: bytes) -> Listing:
        """Store the PDF, then record the listing pointing at it."""

        if draft.content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationFailed("Only PDF uploads are accepted")
        if not content:
            raise ValidationFailed("Uploaded file is empty")

        asset_key = self.key_factory(draft.filename)
        self.storage.upload(asset_key, content, content_type=draft.content_type)
        try:
            listing = self.repository.insert_listing(
                title=draft.title.strip(),
                price=draft.price,
                asset_key=asset_key,
            )
        except MarketplaceError:
            self._discard_orphan(asset_key)
            raise

        logger.info(
            "Listing uploaded",
            extra={"listing_id": listing.listing_id, "asset_key": asset_key, "price": str(listing.price)},
        )
        return listing

    def delete_listing(self, listing_id: str) -> Listing:
        """Remove the backing asset first, then the listing row."""

        listing = self.require_listing(listing_id)
        self.storage.remove(listing.asset_key)
        if not self.repository.delete_listing(listing.listing_id):
            raise ListingNotFound(f"Listing {listing_id!r} does not exist")
        logger.info("Listing deleted", extra={"listing_id": listing.listing_id, "asset_key": listing.asset_key})
        return listing

    def _discard_orphan(self, asset_key: str) -> None:
        try:
            self.storage.remove(asset_key)
        except MarketplaceError:
            logger.exception("Failed to remove orphaned asset", extra={"asset_key": asset_key})


__all__ = ["ALLOWED_CONTENT_TYPES", "CatalogService", "ListingRepository", "timestamped_asset_key"]
