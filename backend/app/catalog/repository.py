"""Persistence layer for catalog listings."""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from ..db import PostgresRepository
from ..errors import PersistenceFailed
from .models import Listing


def _row_to_listing(row: dict) -> Listing:
    return Listing(
        listing_id=str(row["id"]),
        title=row["title"],
        price=Decimal(str(row["price"])),
        asset_key=row["file_path"],
        created_at=row["created_at"],
    )


class PostgresListingRepository(PostgresRepository):
    """Concrete repository persisting listings in the ``notes`` table."""

    def insert_listing(self, *, title: str, price: Decimal, asset_key: str) -> Listing:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO notes (title, price, file_path)
                VALUES (%s, %s, %s)
                RETURNING id, title, price, file_path, created_at
                """,
                (title, price, asset_key),
            )
            row = cursor.fetchone()
            if not row:
                raise PersistenceFailed("Failed to persist listing")
            return _row_to_listing(row)

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, title, price, file_path, created_at
                FROM notes
                WHERE id::text = %s
                LIMIT 1
                """,
                (listing_id,),
            )
            row = cursor.fetchone()
            return _row_to_listing(row) if row else None

    def list_listings(self) -> List[Listing]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, title, price, file_path, created_at
                FROM notes
                ORDER BY created_at DESC
                """
            )
            rows = cursor.fetchall() or []
            return [_row_to_listing(row) for row in rows]

    def delete_listing(self, listing_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM notes WHERE id::text = %s", (listing_id,))
            return cursor.rowcount > 0


__all__ = ["PostgresListingRepository"]
