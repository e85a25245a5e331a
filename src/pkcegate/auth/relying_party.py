"""Relying-party orchestration of the sign-in and sign-out flows.

Coordinates discovery, the flow store, token exchange, identity token
validation and the session store. A browser session moves through
``Anonymous -> PendingAuth -> Authenticated -> PendingLogout -> Anonymous``;
the HTTP layer maps each transition to a redirect.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import ValidationError

from pkcegate.auth.models.errors import AuthorizationCallbackError
from pkcegate.auth.models.flow import (
    AuthResponseParams,
    build_authorization_url,
    build_logout_url,
)
from pkcegate.auth.models.tokens import IdentityClaims
from pkcegate.auth.primitives.discovery import OIDCDiscovery
from pkcegate.auth.services.flow_store import AuthorizationCodeStore
from pkcegate.auth.services.identity import parse_identity_token
from pkcegate.auth.services.sessions import SessionStore
from pkcegate.auth.services.tokens import TokenExchangeClient
from pkcegate.config import RelyingPartyConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    """Outcome of a completed sign-in."""

    session_id: str
    claims: IdentityClaims


def parse_auth_response(query_params: Mapping[str, str]) -> AuthResponseParams:
    """Parse the authorization callback query.

    Raises:
        AuthorizationCallbackError: If a required parameter is missing, e.g.
            when the identity provider redirected back with ``error=...``
    """
    try:
        return AuthResponseParams.model_validate(dict(query_params))
    except ValidationError as e:
        error = query_params.get("error")
        if error:
            description = query_params.get("error_description", "")
            raise AuthorizationCallbackError(
                f"Authorization failed: {error} ({description})", error=error
            ) from e
        raise AuthorizationCallbackError(
            f"Malformed authorization callback: {e}"
        ) from e


class RelyingParty:
    """Drives the OAuth 2.0 authorization code flow with PKCE.

    Network calls happen only at discovery and token exchange; every store
    access in between runs without suspension.
    """

    def __init__(
        self,
        config: RelyingPartyConfig,
        discovery: OIDCDiscovery | None = None,
        token_client: TokenExchangeClient | None = None,
        flow_store: AuthorizationCodeStore | None = None,
        session_store: SessionStore | None = None,
    ):
        """Initialize the relying party.

        Args:
            config: Identity provider and client settings
            discovery: Discovery client (built from config if omitted)
            token_client: Token exchange client (built from config if omitted)
            flow_store: Pending flow store (in-memory if omitted)
            session_store: Session store (in-memory if omitted)
        """
        self.config = config
        # Stores define __len__, so an injected empty store is falsy
        if discovery is None:
            discovery = OIDCDiscovery(timeout=config.http_timeout)
        if token_client is None:
            token_client = TokenExchangeClient(timeout=config.http_timeout)
        if flow_store is None:
            flow_store = AuthorizationCodeStore(ttl_seconds=config.flow_ttl_seconds)
        if session_store is None:
            session_store = SessionStore()

        self.discovery = discovery
        self.token_client = token_client
        self.flow_store = flow_store
        self.session_store = session_store

    async def start_sign_in(self) -> str:
        """Start a sign-in flow.

        Returns:
            Authorization URL the browser should be redirected to
        """
        endpoints = await self.discovery.resolve(
            self.config.idp_base_url, self.config.realm
        )
        redirect_url = self.config.signin_redirect_url

        auth_code = self.flow_store.create(redirect_url)
        authorization_url = build_authorization_url(
            endpoints.authorization_endpoint,
            redirect_url,
            self.config.client_id,
            auth_code,
        )

        logger.info(f"Started sign-in flow for client {self.config.client_id}")
        return authorization_url

    async def complete_sign_in(self, query_params: Mapping[str, str]) -> SignInResult:
        """Complete a sign-in flow from the callback query.

        The flow entry is consumed before any network call, so a replayed
        callback fails even if the first exchange is still in flight.

        Raises:
            AuthorizationCallbackError: If the callback query is incomplete
            UnknownOrExpiredFlowError: If the state has no live flow
            DiscoveryError: If the token endpoint cannot be resolved
            TokenExchangeError: If the code cannot be exchanged
            MalformedTokenError: If the identity token is invalid
        """
        auth_response = parse_auth_response(query_params)
        flow = self.flow_store.consume(auth_response.state)

        endpoints = await self.discovery.resolve(
            self.config.idp_base_url, self.config.realm
        )
        token_response = await self.token_client.exchange_code(
            endpoints.token_endpoint,
            flow.redirect_url,
            self.config.client_id,
            self.config.client_secret,
            auth_response.code,
            flow.code_verifier,
        )
        claims = parse_identity_token(token_response.id_token)

        session_id = self.session_store.create(claims)
        logger.info(f"Signed in {claims.preferred_username} ({claims.sub})")
        return SignInResult(session_id=session_id, claims=claims)

    async def start_sign_out(self) -> str:
        """Start RP-initiated logout.

        Returns:
            End-session URL the browser should be redirected to
        """
        endpoints = await self.discovery.resolve(
            self.config.idp_base_url, self.config.realm
        )
        return build_logout_url(
            endpoints.end_session_endpoint,
            self.config.signout_redirect_url,
            self.config.client_id,
        )

    def complete_sign_out(self, session_id: str | None) -> None:
        """Delete the server-side session, if there is one."""
        if session_id:
            self.session_store.delete(session_id)
            logger.info("Signed out session")
        else:
            logger.debug("Sign-out callback without a session cookie")

    def is_authenticated(self, session_id: str | None) -> bool:
        return bool(session_id) and self.session_store.exists(session_id)

    async def close(self) -> None:
        """Close all service connections."""
        await self.discovery.close()
        await self.token_client.close()
