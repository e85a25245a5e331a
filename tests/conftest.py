import base64
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from pkcegate.auth.primitives.discovery import OIDCDiscovery
from pkcegate.auth.relying_party import RelyingParty
from pkcegate.auth.services.tokens import TokenExchangeClient
from pkcegate.config import RelyingPartyConfig

IDP = "http://localhost:8888/realms/kb"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


class FakeIdentityProvider:
    """In-process stand-in for a Keycloak realm, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.discovery_status = 200
        self.token_status = 200
        self.id_token_payload: object = {
            "sub": "f1c2a0de-1111-2222-3333-444455556666",
            "email": "jane@example.com",
            "email_verified": True,
            "preferred_username": "jane",
            "exp": 1700003600,
            "iat": 1700000000,
        }

    @property
    def token_requests(self) -> list[dict[str, list[str]]]:
        return [
            parse_qs(request.content.decode())
            for request in self.requests
            if request.url.path.endswith("/token")
        ]

    def id_token(self) -> str:
        header = _b64url(json.dumps({"alg": "RS256", "typ": "JWT"}).encode())
        payload = _b64url(json.dumps(self.id_token_payload).encode())
        return f"{header}.{payload}.c2lnbmF0dXJl"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = urlparse(str(request.url)).path

        if path == "/realms/kb/.well-known/openid-configuration":
            if self.discovery_status != 200:
                return httpx.Response(self.discovery_status, text="Unavailable")
            return httpx.Response(
                200,
                json={
                    "issuer": IDP,
                    "authorization_endpoint": f"{IDP}/protocol/openid-connect/auth",
                    "token_endpoint": f"{IDP}/protocol/openid-connect/token",
                    "end_session_endpoint": f"{IDP}/protocol/openid-connect/logout",
                },
            )

        if path == "/realms/kb/protocol/openid-connect/token":
            if self.token_status != 200:
                return httpx.Response(
                    self.token_status,
                    json={
                        "error": "invalid_grant",
                        "error_description": "Code not valid",
                    },
                )
            return httpx.Response(
                200,
                json={
                    "access_token": "access-token-xyz",
                    "expires_in": 300,
                    "id_token": self.id_token(),
                    "refresh_expires_in": 1800,
                    "refresh_token": "refresh-token-abc",
                    "scope": "openid email profile",
                    "session_state": "3c1f7a4e",
                    "token_type": "Bearer",
                },
            )

        return httpx.Response(404, text="Not Found")


@pytest.fixture
def config() -> RelyingPartyConfig:
    return RelyingPartyConfig()


@pytest.fixture
def idp() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def relying_party(config, idp) -> RelyingParty:
    discovery = OIDCDiscovery()
    discovery._http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(idp.handler)
    )
    token_client = TokenExchangeClient()
    token_client._http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(idp.handler)
    )
    return RelyingParty(config, discovery=discovery, token_client=token_client)
