"""OpenID Connect provider discovery primitive.

Resolves the endpoints of a realm from its well-known metadata document
(OpenID Connect Discovery 1.0). Nothing is cached: every flow step that
needs an endpoint resolves it again.
"""

from __future__ import annotations

import logging

import httpx

from pkcegate.auth.models.discovery import WellKnownEndpoints
from pkcegate.auth.models.errors import DiscoveryError, ResponseValidationError
from pkcegate.auth.primitives.fetch import fetch_validated

logger = logging.getLogger(__name__)


def well_known_url(base_path: str, realm: str) -> str:
    """Build the discovery document URL for a realm.

    Args:
        base_path: Identity provider base URL, e.g. ``http://localhost:8888``
        realm: Realm name

    Returns:
        ``{base_path}/realms/{realm}/.well-known/openid-configuration``
    """
    return f"{base_path.rstrip('/')}/realms/{realm}/.well-known/openid-configuration"


class OIDCDiscovery:
    """Fetches and validates OpenID Connect discovery documents."""

    def __init__(self, timeout: float = 30.0):
        """Initialize OIDC discovery.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def resolve(self, base_path: str, realm: str) -> WellKnownEndpoints:
        """Resolve the endpoints of ``realm``.

        Args:
            base_path: Identity provider base URL
            realm: Realm name

        Returns:
            The validated endpoints

        Raises:
            DiscoveryError: If the document cannot be fetched or does not
                match the expected shape
        """
        metadata_url = well_known_url(base_path, realm)
        logger.debug(f"Fetching discovery document from: {metadata_url}")

        try:
            request = self._http_client.build_request("GET", metadata_url)
            endpoints = await fetch_validated(
                self._http_client, WellKnownEndpoints, request
            )
        except httpx.HTTPStatusError as e:
            raise DiscoveryError(
                f"Failed to fetch discovery document from {metadata_url}: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise DiscoveryError(
                f"HTTP error fetching discovery document from {metadata_url}: {e}"
            ) from e
        except ResponseValidationError as e:
            raise DiscoveryError(
                f"Invalid discovery document from {metadata_url}"
            ) from e
        except ValueError as e:
            raise DiscoveryError(
                f"Discovery document from {metadata_url} is not valid JSON: {e}"
            ) from e

        logger.debug(f"Resolved endpoints for realm {realm}")
        return endpoints

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http_client.aclose()
