"""Security-related models for the authorization code flow.

Contains the PKCE secret pair and the per-flow records that correlate a
callback with the sign-in request that started it.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PkceSecret:
    """PKCE (Proof Key for Code Exchange) verifier and its S256 challenge.

    Immutable pair generated for each authorization flow (RFC 7636).
    """

    code_verifier: str = field()
    code_challenge: str = field()

    def __post_init__(self) -> None:
        """Validate the pair meets RFC 7636 requirements."""
        # Deferred: the primitives module imports this one
        from pkcegate.auth.primitives.pkce import verify_code_challenge

        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if not verify_code_challenge(self.code_verifier, self.code_challenge):
            raise ValueError("code_challenge does not match code_verifier")


@dataclass(frozen=True)
class AuthCode:
    """State and verifier handed back when a sign-in flow is started."""

    state: str
    code_verifier: str


@dataclass(frozen=True)
class AuthFlowEntry:
    """A pending sign-in flow, keyed by its state.

    Owned by the authorization-code store and removed the first time a
    callback retrieves it.
    """

    state: str
    code_verifier: str
    redirect_url: str
    created_at: float  # clock reading at creation, used for expiry

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at > ttl_seconds
