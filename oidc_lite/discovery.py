"""OpenID Connect discovery.

Fetches the provider's openid-configuration document and extracts the
authorization and token endpoints from it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .errors import AuthFailure, DiscoveryLoadError, DiscoveryParseError
from .transport import create_http_client, is_success_status, is_valid_url

logger = logging.getLogger(__name__)

DISCOVERY_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}


@dataclass
class DiscoveryDocument:
    """Endpoints gathered from a discovery document.

    Endpoints are empty strings when the provider omits them.
    """

    authorization_endpoint: str = ""
    token_endpoint: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, repr=False)

    def is_populated(self) -> bool:
        """Check if at least one endpoint has been resolved."""
        return bool(self.authorization_endpoint or self.token_endpoint)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscoveryDocument":
        """Create from the decoded discovery JSON object."""
        auth_endpoint = data.get("authorization_endpoint")
        token_endpoint = data.get("token_endpoint")
        return cls(
            authorization_endpoint=auth_endpoint if isinstance(auth_endpoint, str) else "",
            token_endpoint=token_endpoint if isinstance(token_endpoint, str) else "",
            metadata=data,
        )


async def fetch_discovery_document(
    discovery_url: str,
    http_client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DiscoveryDocument | None:
    """Fetch and parse a provider discovery document.

    Args:
        discovery_url: Full openid-configuration URL
        http_client: Optional HTTP client to use
        transport: Optional transport for the client created when
            http_client is not given

    Returns:
        DiscoveryDocument, or None if discovery_url is not a valid URL
        (no request is made in that case)

    Raises:
        DiscoveryLoadError: If the status is outside 200-228
        DiscoveryParseError: If the body is not a JSON object
        AuthFailure: If the request itself fails
    """
    if not is_valid_url(discovery_url):
        logger.warning(f"Discovery URL is not a valid URL, skipping discovery: {discovery_url!r}")
        return None

    client = http_client or create_http_client(transport)
    should_close = http_client is None

    logger.debug(f"Fetching discovery document from {discovery_url}")

    try:
        response = await client.get(discovery_url, headers=DISCOVERY_HEADERS)

        if not is_success_status(response.status_code):
            raise DiscoveryLoadError(
                f"Unable to load discovery endpoint {discovery_url}: "
                f"HTTP {response.status_code} {response.text}".rstrip()
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DiscoveryParseError(
                f"Unable to parse discovery endpoint {discovery_url}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise DiscoveryParseError(
                f"Unable to parse discovery endpoint {discovery_url}: "
                f"expected a JSON object, got {type(data).__name__}"
            )

        document = DiscoveryDocument.from_dict(data)
        logger.debug(
            f"Resolved endpoints: authorization={document.authorization_endpoint!r} "
            f"token={document.token_endpoint!r}"
        )
        return document

    except httpx.RequestError as e:
        raise AuthFailure(f"Network error fetching discovery document from {discovery_url}: {e}") from e
    finally:
        if should_close:
            await client.aclose()
