"""Token exchange models for the OAuth 2.0 code flow.

Contains the token request parameters, the validated token endpoint
response and the identity claims carried by the ID token.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class TokenRequest:
    """Token exchange request parameters (RFC 6749 Section 4.1.3).

    Immutable request parameters for exchanging an authorization code for
    tokens. Includes the PKCE code_verifier (RFC 7636) and the confidential
    client's secret.
    """

    token_endpoint: str
    code: str
    redirect_uri: str
    client_id: str
    client_secret: str
    code_verifier: str
    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for an application/x-www-form-urlencoded body.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).
        """
        return {
            "grant_type": self.grant_type,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code_verifier": self.code_verifier,
            "code": self.code,
        }


class TokenResponse(BaseModel):
    """Successful token endpoint response as issued by the identity provider."""

    model_config = ConfigDict(strict=True)

    access_token: str
    id_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int
    scope: str
    session_state: str
    token_type: str


class IdentityClaims(BaseModel):
    """Claims decoded from the ID token payload."""

    model_config = ConfigDict(strict=True)

    sub: str
    email: str
    email_verified: bool
    preferred_username: str
    exp: int
    iat: int
