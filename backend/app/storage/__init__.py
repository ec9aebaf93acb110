"""Object storage adapters for listing assets."""

from .base import AssetStorage
from .supabase_bucket import SupabaseBucketStorage

__all__ = ["AssetStorage", "SupabaseBucketStorage"]
