"""API routes for browsing the catalog and opening purchased notes."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..errors import MarketplaceError
from ..schemas.listings import AccessResponse, CatalogEntryOut, CatalogResponse
from ..services import marketplace
from .dependencies import get_current_user

router = APIRouter(prefix="/api/listings", tags=["listings"])


@router.get("", response_model=CatalogResponse)
def list_catalog(*, current_user=Depends(get_current_user)) -> CatalogResponse:
    gate = marketplace.get_access_gate()
    try:
        entries = gate.annotate_catalog(str(current_user.user_id))
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return CatalogResponse(notes=[CatalogEntryOut.from_entry(entry) for entry in entries])


@router.get("/{note_id}/access", response_model=AccessResponse)
def get_access(note_id: str, *, current_user=Depends(get_current_user)) -> AccessResponse:
    gate = marketplace.get_access_gate()
    try:
        decision = gate.resolve_access(str(current_user.user_id), note_id)
    except MarketplaceError as exc:
        raise exc.to_http_exception() from exc
    return AccessResponse.from_decision(decision)
