"""Listing catalog: purchasable study notes and their stored assets."""

from .models import Listing, ListingDraft, MINOR_UNITS_PER_MAJOR, to_minor_units
from .service import ALLOWED_CONTENT_TYPES, CatalogService, ListingRepository, timestamped_asset_key

__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "CatalogService",
    "Listing",
    "ListingDraft",
    "ListingRepository",
    "MINOR_UNITS_PER_MAJOR",
    "timestamped_asset_key",
    "to_minor_units",
]
