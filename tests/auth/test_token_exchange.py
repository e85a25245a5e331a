"""Tests for the token exchange request builder and client.

Covers:
- Form encoding, method and headers of the token request
- Successful exchange with schema validation
- OAuth error responses, malformed bodies and network failures
"""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs

import httpx
import pytest

from pkcegate.auth.models.errors import ResponseValidationError, TokenExchangeError
from pkcegate.auth.services.tokens import TokenExchangeClient, build_token_request

TOKEN_URL = "http://localhost:8888/realms/kb/protocol/openid-connect/token"
REDIRECT_URL = "http://localhost:8080/api/signin/callback"

TOKEN_BODY = {
    "access_token": "access-token-xyz",
    "expires_in": 300,
    "id_token": "header.payload.signature",
    "refresh_expires_in": 1800,
    "refresh_token": "refresh-token-abc",
    "scope": "openid email profile",
    "session_state": "3c1f7a4e",
    "token_type": "Bearer",
    "not-before-policy": 0,
}


def make_request() -> httpx.Request:
    return build_token_request(
        TOKEN_URL, REDIRECT_URL, "oauth2-kata", "super-secret", "abc123", "def456"
    )


class TestBuildTokenRequest:
    def test_method_and_target(self):
        # Act
        request = make_request()

        # Assert
        assert request.method == "POST"
        assert str(request.url) == TOKEN_URL

    def test_form_content_type(self):
        # Act
        request = make_request()

        # Assert
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Accept"] == "application/json"

    def test_body_fields_match_inputs(self):
        # Act
        body = parse_qs(make_request().content.decode())

        # Assert
        assert body == {
            "grant_type": ["authorization_code"],
            "redirect_uri": [REDIRECT_URL],
            "client_id": ["oauth2-kata"],
            "client_secret": ["super-secret"],
            "code_verifier": ["def456"],
            "code": ["abc123"],
        }

    def test_body_percent_encodes_redirect_uri(self):
        # Act
        body = make_request().content.decode()

        # Assert
        assert (
            "redirect_uri=http%3A%2F%2Flocalhost%3A8080%2Fapi%2Fsignin%2Fcallback"
            in body
        )


class TestExecute:
    def setup_method(self):
        # Arrange
        self.token_client = TokenExchangeClient()
        self.token_client._http_client = AsyncMock()

    def _respond_with(self, status_code: int, body) -> None:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.json.return_value = body
        self.token_client._http_client.send.return_value = mock_response

    async def test_successful_exchange(self):
        # Arrange
        self._respond_with(200, TOKEN_BODY)
        request = make_request()

        # Act
        token_response = await self.token_client.execute(request)

        # Assert
        assert token_response.access_token == "access-token-xyz"
        assert token_response.id_token == "header.payload.signature"
        assert token_response.expires_in == 300
        assert token_response.token_type == "Bearer"
        self.token_client._http_client.send.assert_awaited_once_with(request)

    async def test_exchange_code_builds_and_sends(self):
        # Arrange
        self._respond_with(200, TOKEN_BODY)

        # Act
        await self.token_client.exchange_code(
            TOKEN_URL, REDIRECT_URL, "oauth2-kata", "super-secret", "abc123", "def456"
        )

        # Assert
        sent = self.token_client._http_client.send.call_args[0][0]
        assert sent.method == "POST"
        assert parse_qs(sent.content.decode())["code"] == ["abc123"]

    async def test_missing_field_raises(self):
        # Arrange
        body = {k: v for k, v in TOKEN_BODY.items() if k != "id_token"}
        self._respond_with(200, body)

        # Act & Assert
        with pytest.raises(TokenExchangeError) as exc_info:
            await self.token_client.execute(make_request())
        assert isinstance(exc_info.value.__cause__, ResponseValidationError)
        assert exc_info.value.__cause__.source == TOKEN_URL

    async def test_mistyped_field_raises(self):
        # Arrange
        self._respond_with(200, dict(TOKEN_BODY, expires_in="300"))

        # Act & Assert
        with pytest.raises(TokenExchangeError):
            await self.token_client.execute(make_request())

    async def test_oauth_error_response_raises(self):
        # Arrange
        self._respond_with(
            400,
            {
                "error": "invalid_grant",
                "error_description": "Code not valid",
            },
        )

        # Act & Assert
        with pytest.raises(TokenExchangeError, match="invalid_grant"):
            await self.token_client.execute(make_request())

    async def test_non_json_response_raises(self):
        # Arrange
        mock_response = MagicMock()
        mock_response.status_code = 502
        mock_response.json.side_effect = ValueError("Not valid JSON")
        self.token_client._http_client.send.return_value = mock_response

        # Act & Assert
        with pytest.raises(TokenExchangeError, match="non-JSON"):
            await self.token_client.execute(make_request())

    async def test_network_error_raises(self):
        # Arrange
        self.token_client._http_client.send.side_effect = httpx.ConnectError(
            "Connection failed"
        )

        # Act & Assert
        with pytest.raises(TokenExchangeError):
            await self.token_client.execute(make_request())
