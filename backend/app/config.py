"""Environment driven configuration for the marketplace."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class DatabaseConfig:
    host: str
    port: int
    dbname: str
    user: str
    password: str
    connect_timeout: int

    def as_connect_kwargs(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.dbname,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
        }


@dataclass(frozen=True)
class PaymentConfig:
    """Credentials and options for the payment provider."""

    key_id: str
    key_secret: str
    api_url: str
    currency: str
    timeout_seconds: float
    require_signature: bool

    @property
    def has_credentials(self) -> bool:
        return bool(self.key_id and self.key_secret)


@dataclass(frozen=True)
class StorageConfig:
    base_url: str
    bucket: str
    service_key: Optional[str]
    timeout_seconds: float


@dataclass(frozen=True)
class AuthConfig:
    jwt_secret_key: str
    jwt_algorithm: str
    jwt_exp_minutes: int
    session_cookie_name: str
    session_cookie_secure: bool
    admin_email: Optional[str]


@dataclass(frozen=True)
class MarketplaceConfig:
    database: DatabaseConfig
    payments: PaymentConfig
    storage: StorageConfig
    auth: AuthConfig
    cors_origins: Tuple[str, ...]
    log_level: str


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_float(value: Optional[str], *, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected float value, got {value!r}") from exc


def _parse_connect_timeout(raw_value: Optional[str]) -> int:
    timeout = _to_float(raw_value, default=5.0)
    if timeout < 0:
        raise ValueError("DB_CONNECT_TIMEOUT must be non-negative")
    return int(math.ceil(timeout))


def load_database_config(env: Optional[Mapping[str, str]] = None) -> DatabaseConfig:
    env_mapping = os.environ if env is None else env
    return DatabaseConfig(
        host=env_mapping.get("DB_HOST", "127.0.0.1"),
        port=_to_int(env_mapping.get("DB_PORT"), default=5432),
        dbname=env_mapping.get("DB_NAME", "notes_market"),
        user=env_mapping.get("DB_USER", "notes_user"),
        password=env_mapping.get("DB_PASSWORD", "notes_pass"),
        connect_timeout=_parse_connect_timeout(env_mapping.get("DB_CONNECT_TIMEOUT")),
    )


def load_payment_config(env: Optional[Mapping[str, str]] = None) -> PaymentConfig:
    """Load :class:`PaymentConfig` from environment variables."""

    env_mapping = os.environ if env is None else env
    return PaymentConfig(
        key_id=(env_mapping.get("RAZORPAY_KEY_ID") or "").strip(),
        key_secret=(env_mapping.get("RAZORPAY_KEY_SECRET") or "").strip(),
        api_url=(env_mapping.get("RAZORPAY_API_URL") or "").strip().rstrip("/"),
        currency=(env_mapping.get("PAYMENT_CURRENCY") or "INR").strip().upper(),
        timeout_seconds=max(1.0, _to_float(env_mapping.get("PROVIDER_TIMEOUT_SECONDS"), default=10.0)),
        require_signature=_to_bool(env_mapping.get("REQUIRE_PAYMENT_SIGNATURE"), default=False),
    )


def load_storage_config(env: Optional[Mapping[str, str]] = None) -> StorageConfig:
    env_mapping = os.environ if env is None else env
    return StorageConfig(
        base_url=(env_mapping.get("STORAGE_URL") or "http://localhost:54321").rstrip("/"),
        bucket=env_mapping.get("STORAGE_BUCKET", "notes"),
        service_key=env_mapping.get("STORAGE_SERVICE_KEY") or None,
        timeout_seconds=max(1.0, _to_float(env_mapping.get("STORAGE_TIMEOUT_SECONDS"), default=30.0)),
    )


def load_auth_config(env: Optional[Mapping[str, str]] = None) -> AuthConfig:
    env_mapping = os.environ if env is None else env
    admin_email = (env_mapping.get("ADMIN_EMAIL") or "").strip().lower() or None
    return AuthConfig(
        jwt_secret_key=env_mapping.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        jwt_algorithm="HS256",
        jwt_exp_minutes=_to_int(env_mapping.get("JWT_EXP_MINUTES"), default=60 * 24 * 7),
        session_cookie_name=env_mapping.get("SESSION_COOKIE_NAME", "session"),
        session_cookie_secure=_to_bool(env_mapping.get("SESSION_COOKIE_SECURE"), default=False),
        admin_email=admin_email,
    )


def load_config(env: Optional[Mapping[str, str]] = None) -> MarketplaceConfig:
    """Load the full :class:`MarketplaceConfig` from environment variables."""

    env_mapping = os.environ if env is None else env
    raw_origins = env_mapping.get("CORS_ORIGINS", "http://localhost:3000")
    origins = tuple(origin.strip() for origin in raw_origins.split(",") if origin.strip())
    return MarketplaceConfig(
        database=load_database_config(env_mapping),
        payments=load_payment_config(env_mapping),
        storage=load_storage_config(env_mapping),
        auth=load_auth_config(env_mapping),
        cors_origins=origins,
        log_level=(env_mapping.get("LOG_LEVEL") or "INFO").strip().upper(),
    )


def require_payment_credentials(config: PaymentConfig) -> PaymentConfig:
    """Refuse to continue without provider credentials."""

    if not config.has_credentials:
        raise ConfigurationError("RAZORPAY_KEY_ID or RAZORPAY_KEY_SECRET is missing in env")
    return config


__all__ = [
    "AuthConfig",
    "DatabaseConfig",
    "MarketplaceConfig",
    "PaymentConfig",
    "StorageConfig",
    "load_auth_config",
    "load_config",
    "load_database_config",
    "load_payment_config",
    "load_storage_config",
    "require_payment_credentials",
]
