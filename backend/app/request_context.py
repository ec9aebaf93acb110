"""Per-request identity resolved once from the session token."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

ADMIN_ROLE = "admin"
USER_ROLE = "user"


def resolve_role(stored_role: Optional[str], email: Optional[str], admin_email: Optional[str]) -> str:
    """Role claim issued at login: the stored role, or admin for the configured address."""

    if stored_role == ADMIN_ROLE:
        return ADMIN_ROLE
    if admin_email and email and email.strip().lower() == admin_email.strip().lower():
        return ADMIN_ROLE
    return stored_role or USER_ROLE


@dataclass(frozen=True)
class RequestContext:
    user_id: str
    username: str
    email: Optional[str] = None
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def to_claims(self) -> dict:
        return {"sub": self.user_id, "username": self.username, "email": self.email, "role": self.role}

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Optional["RequestContext"]:
        subject = claims.get("sub")
        if not subject:
            return None
        return cls(
            user_id=str(subject),
            username=str(claims.get("username") or ""),
            email=claims.get("email") or None,
            role=str(claims.get("role") or USER_ROLE),
        )


__all__ = ["ADMIN_ROLE", "RequestContext", "USER_ROLE", "resolve_role"]
