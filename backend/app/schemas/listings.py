"""API schemas for catalog browsing and listing access."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..catalog import Listing
from ..purchases import AccessDecision, AccessStatus, CatalogEntry


class ListingOut(BaseModel):
    id: str
    title: str
    price: float
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingOut":
        return cls(
            id=listing.listing_id,
            title=listing.title,
            price=float(listing.price),
            created_at=listing.created_at,
        )


class AccessResponse(BaseModel):
    note_id: str = Field(alias="noteId")
    status: AccessStatus
    url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_decision(cls, decision: AccessDecision) -> "AccessResponse":
        return cls(note_id=decision.listing_id, status=decision.status, url=decision.retrieval_url)


class CatalogEntryOut(ListingOut):
    purchased: bool
    url: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "CatalogEntryOut":
        return cls(
            id=entry.listing.listing_id,
            title=entry.listing.title,
            price=float(entry.listing.price),
            created_at=entry.listing.created_at,
            purchased=entry.access.is_unlocked,
            url=entry.access.retrieval_url,
        )


class CatalogResponse(BaseModel):
    notes: List[CatalogEntryOut]


class AdminListingOut(ListingOut):
    file_path: str = Field(alias="filePath")
    file_url: Optional[str] = Field(alias="fileUrl", default=None)


class AdminListingListResponse(BaseModel):
    notes: List[AdminListingOut]


class DeleteListingResponse(BaseModel):
    deleted: str
    title: str
