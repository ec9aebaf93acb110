from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from backend.app.purchases import Entitlement
from backend.app.purchases.repository import PostgresEntitlementRepository

CREATED = datetime(2024, 3, 1, tzinfo=timezone.utc)


class FakeCursor:
    def __init__(self, row: Optional[dict] = None, rowcount: int = 1) -> None:
        self.row = row
        self.rowcount = rowcount
        self.executed: List[Tuple[str, Tuple[Any, ...]]] = []

    def execute(self, sql: str, params: Tuple[Any, ...]) -> None:
        self.executed.append((" ".join(sql.split()), params))

    def fetchone(self) -> Optional[dict]:
        return self.row

    def close(self) -> None:
        return None


class FakeConnection:
    def __init__(self, cursor: FakeCursor) -> None:
        self._cursor = cursor

    def cursor(self, cursor_factory=None) -> FakeCursor:
        return self._cursor


def test_duplicate_insert_reports_no_new_row():
    cursor = FakeCursor(rowcount=0)
    repository = PostgresEntitlementRepository(conn=FakeConnection(cursor))

    inserted = repository.add_entitlement(
        Entitlement(user_id="u1", listing_id="n1", payment_id="pay_second", created_at=CREATED)
    )

    assert inserted is False
    assert "ON CONFLICT (user_id, note_id) DO NOTHING" in cursor.executed[0][0]


def test_get_entitlement_reads_stored_row():
    cursor = FakeCursor(
        row={"user_id": "u1", "note_id": "n1", "payment_id": "pay_first", "created_at": CREATED}
    )
    repository = PostgresEntitlementRepository(conn=FakeConnection(cursor))

    stored = repository.get_entitlement("u1", "n1")

    assert stored == Entitlement(user_id="u1", listing_id="n1", payment_id="pay_first", created_at=CREATED)
    assert cursor.executed[0][1] == ("u1", "n1")


def test_get_entitlement_without_row_is_none():
    repository = PostgresEntitlementRepository(conn=FakeConnection(FakeCursor(row=None)))

    assert repository.get_entitlement("u1", "n1") is None
