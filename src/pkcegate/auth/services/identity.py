"""Identity token validation.

Decodes the payload segment of the ID token and validates its claims.
The token's signature and issuer are not verified, and ``exp``/``iat`` are
not checked for freshness: the token is trusted because it was received
directly from the token endpoint over the back channel.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging

from pydantic import ValidationError

from pkcegate.auth.models.errors import MalformedTokenError
from pkcegate.auth.models.tokens import IdentityClaims

logger = logging.getLogger(__name__)


def _b64d(segment: str) -> bytes:
    """Decode base64url data that may lack padding.

    The standard alphabet is accepted as well.
    """
    normalized = segment.replace("+", "-").replace("/", "_")
    pad_len = (-len(normalized)) % 4
    return base64.urlsafe_b64decode(normalized + "=" * pad_len)


def decode_token_payload(token: str) -> object:
    """Decode the JSON payload (second segment) of a compact JWT.

    Raises:
        MalformedTokenError: If the token has no payload segment or the
            segment is not base64-encoded JSON
    """
    segments = token.split(".")
    if len(segments) < 2 or not segments[1]:
        raise MalformedTokenError("Identity token has no payload segment")

    try:
        return json.loads(_b64d(segments[1]))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise MalformedTokenError(f"Identity token payload cannot be decoded: {e}") from e


def parse_identity_token(token: str) -> IdentityClaims:
    """Decode and validate the claims of an identity token.

    Args:
        token: Compact-serialized ID token from the token response

    Returns:
        IdentityClaims: Validated claims

    Raises:
        MalformedTokenError: If the payload is not valid base64/JSON or a
            required claim is absent or mistyped
    """
    payload = decode_token_payload(token)

    try:
        claims = IdentityClaims.model_validate(payload)
    except ValidationError as e:
        logger.error(
            f"Identity token claims failed validation: {e.error_count()} error(s) "
            f"{e.errors(include_url=False, include_input=False)}"
        )
        raise MalformedTokenError(f"Identity token claims are invalid: {e}") from e

    logger.debug(f"Parsed identity token for subject {claims.sub}")
    return claims
