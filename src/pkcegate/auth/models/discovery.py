"""Discovery-related models for OpenID Connect provider metadata."""

from __future__ import annotations

from pydantic import BaseModel


class WellKnownEndpoints(BaseModel):
    """Endpoints published in an OpenID Connect discovery document.

    Only the endpoints the sign-in and sign-out flows use are required;
    every other key of the document is ignored.
    """

    authorization_endpoint: str
    token_endpoint: str
    end_session_endpoint: str
