"""Exception hierarchy for the relying-party sign-in flow.

Provides specific exception types for each failure mode so the HTTP layer
can map them to redirects or error responses.
"""

from __future__ import annotations


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 / OpenID Connect related errors."""

    pass


class ResponseValidationError(OAuth2Error):
    """Raised when an identity provider response does not match its schema.

    Carries the URL the response came from so the failure can be traced
    back to the endpoint that produced it.
    """

    def __init__(self, message: str, source: str) -> None:
        super().__init__(message)
        self.source = source


class DiscoveryError(OAuth2Error):
    """Raised when the well-known metadata document cannot be resolved."""

    pass


class UnknownOrExpiredFlowError(OAuth2Error):
    """Raised when a callback carries a state that has no live flow entry.

    Covers states that were never issued, already consumed by an earlier
    callback, or evicted after their time-to-live.
    """

    pass


class TokenExchangeError(OAuth2Error):
    """Raised when exchanging the authorization code for tokens fails."""

    pass


class MalformedTokenError(OAuth2Error):
    """Raised when the identity token payload cannot be decoded or validated."""

    pass


class AuthorizationCallbackError(OAuth2Error):
    """Raised when the authorization callback query is missing required data.

    This indicates the identity provider redirected back without a usable
    authorization response (for example after the user denied consent).
    """

    def __init__(self, message: str, error: str | None = None) -> None:
        super().__init__(message)
        self.error = error
