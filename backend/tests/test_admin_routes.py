from __future__ import annotations

import io
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest
from fastapi import HTTPException
from starlette.datastructures import Headers, UploadFile

from backend.app.catalog import CatalogService, Listing
from backend.app.errors import AssetUnavailable
from backend.app.routes import admin as admin_routes
from backend.app.routes.dependencies import require_admin
from backend.app.services import marketplace

ADMIN = SimpleNamespace(user_id="1", is_admin=True)


class InMemoryListingRepository:
    def __init__(self) -> None:
        self.listings: Dict[str, Listing] = {}

    def insert_listing(self, *, title: str, price: Decimal, asset_key: str) -> Listing:
        listing = Listing(
            listing_id=f"n{len(self.listings) + 1}",
            title=title,
            price=price,
            asset_key=asset_key,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        self.listings[listing.listing_id] = listing
        return listing

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        return self.listings.get(listing_id)

    def list_listings(self) -> List[Listing]:
        return list(self.listings.values())

    def delete_listing(self, listing_id: str) -> bool:
        return self.listings.pop(listing_id, None) is not None


class FakeStorage:
    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}

    def upload(self, key: str, content: bytes, *, content_type: str) -> None:
        self.objects[key] = content

    def remove(self, key: str) -> None:
        self.objects.pop(key, None)

    def public_url(self, key: str) -> str:
        if key not in self.objects:
            raise AssetUnavailable("missing")
        return f"https://cdn.example.test/notes/{key}"


@pytest.fixture
def catalog(monkeypatch):
    repository = InMemoryListingRepository()
    storage = FakeStorage()
    service = CatalogService(repository=repository, storage=storage, key_factory=lambda name: f"1700000000000-{name}")
    monkeypatch.setattr(marketplace, "get_catalog_service", lambda: service)
    monkeypatch.setattr(marketplace, "get_storage", lambda: storage)
    return SimpleNamespace(repository=repository, storage=storage)


def _pdf(name: str = "calculus.pdf", content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(b"%PDF-1.7"),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


def test_require_admin_rejects_regular_users():
    with pytest.raises(HTTPException) as excinfo:
        require_admin(SimpleNamespace(user_id="2", is_admin=False))

    assert excinfo.value.status_code == 403
    assert excinfo.value.detail["code"] == "forbidden"


def test_require_admin_passes_admins_through():
    assert require_admin(ADMIN) is ADMIN


def test_upload_then_list_and_delete(catalog):
    created = admin_routes.upload_listing(title=" Calculus ", price="149.00", file=_pdf(), admin=ADMIN)

    assert created.title == "Calculus"
    assert created.price == 149.0
    assert created.file_path == "1700000000000-calculus.pdf"
    assert created.file_url == "https://cdn.example.test/notes/1700000000000-calculus.pdf"

    listed = admin_routes.list_listings(admin=ADMIN)
    assert [item.id for item in listed.notes] == [created.id]

    deleted = admin_routes.delete_listing(created.id, admin=ADMIN)
    assert deleted.deleted == created.id
    assert catalog.repository.listings == {}
    assert catalog.storage.objects == {}


@pytest.mark.parametrize(
    "title, price, has_file",
    [("", "10", True), ("Calculus", "", True), ("Calculus", "10", False)],
)
def test_upload_requires_every_field(catalog, title, price, has_file):
    with pytest.raises(HTTPException) as excinfo:
        admin_routes.upload_listing(title=title, price=price, file=_pdf() if has_file else None, admin=ADMIN)

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail["error"] == "Please fill all fields and select a PDF."
    assert catalog.storage.objects == {}


@pytest.mark.parametrize("price", ["free", "0", "-3"])
def test_upload_rejects_bad_prices(catalog, price):
    with pytest.raises(HTTPException) as excinfo:
        admin_routes.upload_listing(title="Calculus", price=price, file=_pdf(), admin=ADMIN)

    assert excinfo.value.status_code == 400


def test_upload_rejects_non_pdf(catalog):
    with pytest.raises(HTTPException) as excinfo:
        admin_routes.upload_listing(title="Calculus", price="10", file=_pdf("a.png", "image/png"), admin=ADMIN)

    assert excinfo.value.status_code == 400
    assert catalog.storage.objects == {}


def test_listing_without_stored_file_has_no_url(catalog):
    catalog.repository.insert_listing(title="Orphan", price=Decimal("5"), asset_key="gone.pdf")

    listed = admin_routes.list_listings(admin=ADMIN)

    assert listed.notes[0].file_url is None


def test_delete_unknown_listing_is_404(catalog):
    with pytest.raises(HTTPException) as excinfo:
        admin_routes.delete_listing("missing", admin=ADMIN)

    assert excinfo.value.status_code == 404
