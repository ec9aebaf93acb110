"""Administrative routes for managing listings."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ..catalog import Listing, ListingDraft
from ..errors import AssetUnavailable, MarketplaceError, ValidationFailed
from ..schemas.listings import AdminListingListResponse, AdminListingOut, DeleteListingResponse
from ..services import marketplace
from .dependencies import require_admin

router = APIRouter(prefix="/api/admin/listings", tags=["admin"])


def _admin_listing(listing: Listing) -> AdminListingOut:
    try:
        file_url: Optional[str] = marketplace.get_storage().public_url(listing.asset_key)
    except AssetUnavailable:
        file_url = None
    return AdminListingOut(
        id=listing.listing_id,
        title=listing.title,
        price=float(listing.price),
        created_at=listing.created_at,
        file_path=listing.asset_key,
        file_url=file_url,
    )


def _parse_price(raw: str) -> Decimal:
    try:
        price = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValidationFailed("Price must be a number").to_http_exception() from exc
    if not price.is_finite() or price <= 0:
        raise ValidationFailed("Price must be greater than zero").to_http_exception()
    return price


@router.get("", response_model=AdminListingListResponse)
def list_listings(*, admin=Depends(require_admin)) -> AdminListingListResponse:
    service = marketplace.get_catalog_service()
    try:
        listings = service.list_listings()
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return AdminListingListResponse(notes=[_admin_listing(listing) for listing in listings])


@router.post("", response_model=AdminListingOut, status_code=status.HTTP_201_CREATED)
def upload_listing(
    title: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    *,
    admin=Depends(require_admin),
) -> AdminListingOut:
    if file is None or not (title or "").strip() or not (price or "").strip():
        raise ValidationFailed("Please fill all fields and select a PDF.").to_http_exception()

    draft = ListingDraft(
        title=title.strip(),
        price=_parse_price(price),
        filename=file.filename or "note.pdf",
        content_type=file.content_type or "application/octet-stream",
    )
    content = file.file.read()
    service = marketplace.get_catalog_service()
    try:
        listing = service.upload_listing(draft, content)
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return _admin_listing(listing)


@router.delete("/{note_id}", response_model=DeleteListingResponse)
def delete_listing(note_id: str, *, admin=Depends(require_admin)) -> DeleteListingResponse:
    service = marketplace.get_catalog_service()
    try:
        listing = service.delete_listing(note_id)
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return DeleteListingResponse(deleted=listing.listing_id, title=listing.title)
