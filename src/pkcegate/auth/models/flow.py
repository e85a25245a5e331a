"""Authorization flow models for the OAuth 2.0 code flow with PKCE.

Contains models for authorization requests, callback parameters and the
end-session (sign-out) redirect.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from pydantic import BaseModel

from pkcegate.auth.models.security import AuthCode
from pkcegate.auth.primitives.pkce import generate_code_challenge


def _append_query(endpoint: str, params: dict[str, str]) -> str:
    missing = [key for key, value in params.items() if not value]
    if missing:
        raise ValueError(f"Missing required query parameters: {', '.join(missing)}")

    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{urlencode(params)}"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the code flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    code_challenge: str
    state: str
    code_challenge_method: str = "S256"
    scope: str = "openid"

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL.

        Every parameter is mandatory; an empty value raises ``ValueError``
        rather than being dropped from the query.
        """
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "state": self.state,
            "redirect_uri": self.redirect_uri,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
            "scope": self.scope,
        }
        return _append_query(self.authorization_endpoint, params)


@dataclass(frozen=True)
class LogoutRequest:
    """RP-initiated logout parameters for the end-session endpoint."""

    end_session_endpoint: str
    post_logout_redirect_uri: str
    client_id: str

    def build_logout_url(self) -> str:
        """Build the end-session URL with an encoded post-logout redirect."""
        params = {
            "post_logout_redirect_uri": self.post_logout_redirect_uri,
            "client_id": self.client_id,
        }
        return _append_query(self.end_session_endpoint, params)


class AuthResponseParams(BaseModel):
    """Query parameters of a successful authorization callback."""

    state: str
    code: str
    iss: str
    session_state: str


def build_authorization_url(
    auth_endpoint: str,
    redirect_url: str,
    client_id: str,
    auth_code: AuthCode,
) -> str:
    """Build the authorization redirect for a freshly created flow.

    Args:
        auth_endpoint: Authorization endpoint from the discovery document
        redirect_url: Callback URL registered for this client
        client_id: OAuth client identifier
        auth_code: State and code verifier returned by the code store

    Returns:
        Authorization URL carrying the S256 challenge derived from the verifier
    """
    request = AuthorizationRequest(
        authorization_endpoint=auth_endpoint,
        client_id=client_id,
        redirect_uri=redirect_url,
        code_challenge=generate_code_challenge(auth_code.code_verifier),
        state=auth_code.state,
    )
    return request.build_authorization_url()


def build_logout_url(
    end_session_endpoint: str, post_logout_redirect_uri: str, client_id: str
) -> str:
    return LogoutRequest(
        end_session_endpoint=end_session_endpoint,
        post_logout_redirect_uri=post_logout_redirect_uri,
        client_id=client_id,
    ).build_logout_url()
