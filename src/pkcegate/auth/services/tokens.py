"""Token exchange service.

Implements the RFC 6749 token endpoint interaction for the authorization
code grant, carrying the PKCE code_verifier (RFC 7636) and the
confidential client's credentials.
"""

from __future__ import annotations

import logging

import httpx

from pkcegate.auth.models.errors import ResponseValidationError, TokenExchangeError
from pkcegate.auth.models.tokens import TokenRequest, TokenResponse
from pkcegate.auth.primitives.fetch import validate_payload

logger = logging.getLogger(__name__)

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


def build_token_request(
    token_endpoint: str,
    redirect_url: str,
    client_id: str,
    client_secret: str,
    code: str,
    code_verifier: str,
) -> httpx.Request:
    """Build the form-encoded POST that exchanges a code for tokens.

    Args:
        token_endpoint: Token endpoint from the discovery document
        redirect_url: Redirect URI used in the authorization request
        client_id: OAuth client identifier
        client_secret: OAuth client secret
        code: Authorization code from the callback
        code_verifier: PKCE verifier stored when the flow started

    Returns:
        Prepared ``httpx.Request``
    """
    token_request = TokenRequest(
        token_endpoint=token_endpoint,
        code=code,
        redirect_uri=redirect_url,
        client_id=client_id,
        client_secret=client_secret,
        code_verifier=code_verifier,
    )
    return httpx.Request(
        "POST",
        token_request.token_endpoint,
        data=token_request.to_form_data(),
        headers=FORM_HEADERS,
    )


class TokenExchangeClient:
    """Sends token requests and validates the token endpoint's response."""

    def __init__(self, timeout: float = 30.0):
        """Initialize the token exchange client.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def exchange_code(
        self,
        token_endpoint: str,
        redirect_url: str,
        client_id: str,
        client_secret: str,
        code: str,
        code_verifier: str,
    ) -> TokenResponse:
        """Build and execute the token request in one call."""
        request = build_token_request(
            token_endpoint, redirect_url, client_id, client_secret, code, code_verifier
        )
        return await self.execute(request)

    async def execute(self, request: httpx.Request) -> TokenResponse:
        """Send a token request and validate the response.

        Args:
            request: Request built by :func:`build_token_request`

        Returns:
            TokenResponse: Validated token response

        Raises:
            TokenExchangeError: On transport failure, an OAuth error response
                or a response that does not match the expected schema
        """
        logger.debug(f"Exchanging authorization code at {request.url}")

        try:
            response = await self._http_client.send(request)
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"HTTP error during token exchange: {e}") from e

        return self._parse_token_response(response, str(request.url))

    def _parse_token_response(
        self, response: httpx.Response, source: str
    ) -> TokenResponse:
        """Parse the token endpoint response.

        Error responses (RFC 6749 Section 5.2) are reported with the
        provider's error code and description.
        """
        try:
            response_data = response.json()
        except ValueError as e:
            raise TokenExchangeError(
                f"Token endpoint returned a non-JSON response "
                f"({response.status_code}): {e}"
            ) from e

        if response.status_code != 200:
            error_code = "unknown_error"
            error_description = "No description provided"
            if isinstance(response_data, dict):
                error_code = response_data.get("error", error_code)
                error_description = response_data.get(
                    "error_description", error_description
                )

            logger.warning(
                f"Token exchange failed with {response.status_code}: "
                f"{error_code} - {error_description}"
            )
            raise TokenExchangeError(
                f"Token exchange failed: {error_code} ({error_description})"
            )

        try:
            token_response = validate_payload(TokenResponse, response_data, source)
        except ResponseValidationError as e:
            raise TokenExchangeError(f"Invalid token response from {source}") from e

        logger.info("Token exchange successful")
        return token_response

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
