"""Supabase Storage adapter for the public listings bucket."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from storage3.utils import StorageException
from supabase import ClientOptions, create_client

from ..config import StorageConfig
from ..errors import AssetUnavailable, ConfigurationError, StorageFailed

logger = logging.getLogger("storage")


class SupabaseBucketStorage:
    """Uploads and removes objects with a service key; reads are public URLs.

    Anyone holding a URL can fetch the object. Access policy lives in the
    access gate, the bucket only keeps URLs unguessable.
    """

    def __init__(self, bucket_api: Any, *, bucket: str) -> None:
        if not bucket:
            raise ValueError("bucket must be provided")
        self.bucket = bucket
        self._bucket_api = bucket_api

    @classmethod
    def from_config(cls, config: StorageConfig) -> "SupabaseBucketStorage":
        if not config.service_key:
            raise ConfigurationError("STORAGE_SERVICE_KEY is missing in env")
        client = create_client(
            config.base_url,
            config.service_key,
            options=ClientOptions(storage_client_timeout=int(config.timeout_seconds)),
        )
        return cls(client.storage.from_(config.bucket), bucket=config.bucket)

    def upload(self, key: str, content: bytes, *, content_type: str) -> None:
        try:
            self._bucket_api.upload(key, content, {"content-type": content_type})
        except (StorageException, httpx.HTTPError) as exc:
            raise self._failure("upload", key, exc) from exc
        logger.info("Stored asset", extra={"asset_key": key, "size_bytes": len(content)})

    def remove(self, key: str) -> None:
        try:
            self._bucket_api.remove([key])
        except (StorageException, httpx.HTTPError) as exc:
            raise self._failure("remove", key, exc) from exc
        logger.info("Removed asset", extra={"asset_key": key})

    def public_url(self, key: str) -> str:
        if not key or not key.strip():
            raise AssetUnavailable("Listing has no stored asset")
        url: Optional[str] = self._bucket_api.get_public_url(key)
        if not url:
            raise AssetUnavailable(f"No public URL for {key}")
        return url.rstrip("?")

    def _failure(self, action: str, key: str, exc: Exception) -> StorageFailed:
        message = _error_message(exc)
        logger.warning("Storage %s rejected", action, extra={"asset_key": key, "error": message})
        return StorageFailed(f"Storage {action} failed for {key}: {message}")


def _error_message(exc: Exception) -> str:
    # storage3 raises StorageApiError with a .message, older releases pass a dict
    message = getattr(exc, "message", None)
    if message:
        return str(message)
    if exc.args and isinstance(exc.args[0], dict):
        details = exc.args[0]
        return str(details.get("message") or details.get("error") or details)
    return str(exc) or type(exc).__name__


__all__ = ["SupabaseBucketStorage"]
