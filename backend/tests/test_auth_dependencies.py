import pathlib
import sys
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient


ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import backend.main as backend_main
from backend.app.config import load_config
from backend.app.errors import ConfigurationError
from backend.app.request_context import RequestContext
from backend.app.routes import dependencies


ALICE = RequestContext(user_id="123", username="alice", email="alice@example.com", role="user")


def test_get_optional_current_user_missing_cookie_returns_none():
    assert backend_main.get_optional_current_user(None) is None


def test_get_optional_current_user_invalid_token_returns_none():
    assert backend_main.get_optional_current_user("not-a-valid-token") is None


def test_get_optional_current_user_expired_token_returns_none():
    expired_token = backend_main.create_access_token(context=ALICE, expires_delta=timedelta(minutes=-5))

    assert backend_main.get_optional_current_user(expired_token) is None


def test_get_optional_current_user_valid_token_returns_context():
    token = backend_main.create_access_token(context=ALICE)

    result = backend_main.get_optional_current_user(token)

    assert result == ALICE
    assert not result.is_admin


def test_get_current_user_requires_session():
    with pytest.raises(HTTPException) as excinfo:
        backend_main.get_current_user(None)

    assert excinfo.value.status_code == 401


def test_http_errors_render_error_body():
    backend_main.app.dependency_overrides[dependencies.get_current_user] = lambda: ALICE
    try:
        client = TestClient(backend_main.app)
        response = client.post("/api/create-order", json={"amount": 499})
    finally:
        backend_main.app.dependency_overrides.clear()

    assert response.status_code == 400
    assert response.json() == {"error": "Amount and noteId are required", "code": "validation_failed"}


def test_unauthenticated_requests_are_rejected():
    client = TestClient(backend_main.app)

    response = client.get("/api/listings")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


def test_startup_without_provider_credentials_fails_fast(monkeypatch):
    monkeypatch.setattr(backend_main, "CONFIG", load_config({}))

    with pytest.raises(ConfigurationError, match="RAZORPAY_KEY_ID or RAZORPAY_KEY_SECRET"):
        with TestClient(backend_main.app):
            pass


def test_startup_with_provider_credentials_serves_requests(monkeypatch):
    monkeypatch.setattr(
        backend_main,
        "CONFIG",
        load_config({"RAZORPAY_KEY_ID": "rzp_test", "RAZORPAY_KEY_SECRET": "secret"}),
    )

    with TestClient(backend_main.app) as client:
        response = client.get("/api/healthz")

    assert response.json() == {"ok": True}
