"""PKCE (Proof Key for Code Exchange) primitives.

Implements RFC 7636 parameter generation to prevent authorization code
interception attacks, plus the state value used to correlate a callback
with the sign-in request that started it.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from pkcegate.auth.models.security import PkceSecret


def generate_state() -> str:
    """Generate a cryptographically secure state parameter.

    The state only correlates the callback with its flow (CSRF and replay
    protection); it is not a secret.

    Returns:
        URL-safe random string (32 characters)
    """
    return secrets.token_urlsafe(24)


def generate_code_verifier() -> str:
    """Generate a cryptographically secure code verifier.

    RFC 7636 Section 4.1: the verifier must be 43-128 characters from the
    unreserved set. Hex digits are a subset of that set.

    Returns:
        A 64-character hex-encoded verifier (32 random bytes)
    """
    return secrets.token_hex(32)


def generate_code_challenge(code_verifier: str) -> str:
    """Generate the code challenge for a verifier using the S256 method.

    RFC 7636 Section 4.2: for S256, the code challenge is
    BASE64URL-ENCODE(SHA256(ASCII(code_verifier))), without padding.

    Args:
        code_verifier: The code verifier to hash

    Returns:
        Base64url-encoded SHA256 hash of the code verifier
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def verify_code_challenge(code_verifier: str, code_challenge: str) -> bool:
    """Check a verifier against a previously issued S256 challenge."""
    return secrets.compare_digest(
        generate_code_challenge(code_verifier), code_challenge
    )


def generate_pkce_secret() -> PkceSecret:
    verifier = generate_code_verifier()
    return PkceSecret(
        code_verifier=verifier, code_challenge=generate_code_challenge(verifier)
    )
