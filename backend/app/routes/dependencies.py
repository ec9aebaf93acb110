"""Authentication dependencies shared by the marketplace routers."""
from __future__ import annotations

import os
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status

try:  # pragma: no cover - resolve context helpers when imported from FastAPI app
    from backend import app_context
except ModuleNotFoundError as exc:  # pragma: no cover
    if exc.name != "backend":
        raise
    import app_context  # type: ignore[no-redef]


_SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")


def get_current_user(
    session_token: Optional[str] = Cookie(None, alias=_SESSION_COOKIE_NAME),
):
    return app_context.get_current_user(session_token=session_token)


def require_admin(current_user=Depends(get_current_user)):
    if not getattr(current_user, "is_admin", False):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Admin access required", "code": "forbidden"},
        )
    return current_user


__all__ = ["get_current_user", "require_admin"]
