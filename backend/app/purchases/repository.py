"""Persistence layer for entitlements."""
from __future__ import annotations

from typing import Optional, Set

from ..db import PostgresRepository
from .models import Entitlement


class PostgresEntitlementRepository(PostgresRepository):
    """Stores entitlements in the ``purchases`` table.

    The table carries ``UNIQUE (user_id, note_id)``; a repeated purchase of the
    same listing leaves the original row untouched.
    """

    def add_entitlement(self, entitlement: Entitlement) -> bool:
        """Insert the entitlement, returning ``False`` when the pair already exists."""

        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO purchases (user_id, note_id, payment_id, created_at)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (user_id, note_id) DO NOTHING
                """,
                (
                    entitlement.user_id,
                    entitlement.listing_id,
                    entitlement.payment_id,
                    entitlement.created_at,
                ),
            )
            return cursor.rowcount > 0

    def get_entitlement(self, user_id: str, listing_id: str) -> Optional[Entitlement]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT user_id, note_id, payment_id, created_at FROM purchases WHERE user_id = %s AND note_id = %s",
                (user_id, listing_id),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return Entitlement(
            user_id=str(row["user_id"]),
            listing_id=str(row["note_id"]),
            payment_id=row["payment_id"],
            created_at=row["created_at"],
        )

    def list_listing_ids(self, user_id: str) -> Set[str]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT note_id FROM purchases WHERE user_id = %s",
                (user_id,),
            )
            rows = cursor.fetchall() or []
            return {str(row["note_id"]) for row in rows}


__all__ = ["PostgresEntitlementRepository"]
