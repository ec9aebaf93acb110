"""Storage protocol used by the catalog and the access gate."""
from __future__ import annotations

from typing import Protocol


class AssetStorage(Protocol):
    """Stores binary assets by key and mints retrieval URLs for them."""

    def upload(self, key: str, content: bytes, *, content_type: str) -> None:
        """Store ``content`` under ``key``."""

    def remove(self, key: str) -> None:
        """Delete the object stored under ``key``."""

    def public_url(self, key: str) -> str:
        """Return a publicly fetchable URL for ``key``."""
