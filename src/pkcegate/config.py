"""Runtime configuration for the relying party.

Settings come from ``PKCEGATE_*`` environment variables; the entry point
loads a ``.env`` file first with python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PUBLIC_DIR = Path(__file__).parent / "web" / "public"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {name}: {raw}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid number for {name}: {raw}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {raw}")


@dataclass(frozen=True)
class RelyingPartyConfig:
    """Identity provider, client and server settings."""

    idp_base_url: str = "http://localhost:8888"
    realm: str = "kb"
    client_id: str = "oauth2-kata"
    client_secret: str = "super-secret"
    app_base_url: str = "http://localhost:8080"
    host: str = "127.0.0.1"
    port: int = 8080
    cookie_secure: bool = False  # only for non-TLS development deployments
    session_ttl_seconds: int = 3600
    flow_ttl_seconds: float = 600.0
    http_timeout: float = 30.0
    log_level: str = "INFO"
    public_dir: Path = DEFAULT_PUBLIC_DIR

    @property
    def app_root(self) -> str:
        return self.app_base_url.rstrip("/")

    @property
    def signin_redirect_url(self) -> str:
        """Callback URL registered with the identity provider for sign-in."""
        return f"{self.app_root}/api/signin/callback"

    @property
    def signout_redirect_url(self) -> str:
        """Post-logout redirect URL registered with the identity provider."""
        return f"{self.app_root}/api/signout/callback"

    @classmethod
    def from_env(cls) -> RelyingPartyConfig:
        """Build the configuration from ``PKCEGATE_*`` environment variables.

        Raises:
            ValueError: If a numeric or boolean variable cannot be parsed
        """
        return cls(
            idp_base_url=_env_str("PKCEGATE_IDP_BASE_URL", cls.idp_base_url),
            realm=_env_str("PKCEGATE_REALM", cls.realm),
            client_id=_env_str("PKCEGATE_CLIENT_ID", cls.client_id),
            client_secret=_env_str("PKCEGATE_CLIENT_SECRET", cls.client_secret),
            app_base_url=_env_str("PKCEGATE_APP_BASE_URL", cls.app_base_url),
            host=_env_str("PKCEGATE_HOST", cls.host),
            port=_env_int("PKCEGATE_PORT", cls.port),
            cookie_secure=_env_bool("PKCEGATE_COOKIE_SECURE", cls.cookie_secure),
            session_ttl_seconds=_env_int(
                "PKCEGATE_SESSION_TTL_SECONDS", cls.session_ttl_seconds
            ),
            flow_ttl_seconds=_env_float(
                "PKCEGATE_FLOW_TTL_SECONDS", cls.flow_ttl_seconds
            ),
            http_timeout=_env_float("PKCEGATE_HTTP_TIMEOUT", cls.http_timeout),
            log_level=_env_str("PKCEGATE_LOG_LEVEL", cls.log_level).upper(),
            public_dir=Path(_env_str("PKCEGATE_PUBLIC_DIR", str(cls.public_dir))),
        )
