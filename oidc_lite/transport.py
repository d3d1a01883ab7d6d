"""HTTP transport helpers.

Every request goes through a freshly created ``httpx.AsyncClient`` so that
no cookie jar or connection pool outlives a single call. Independent login
attempts therefore never share session state.
"""

import base64
import logging

import httpx

logger = logging.getLogger(__name__)

# Inclusive range of statuses treated as success for discovery and ROPG
SUCCESS_STATUS_MIN = 200
SUCCESS_STATUS_MAX = 228

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def create_http_client(
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an isolated HTTP client for one request.

    Args:
        transport: Optional transport override (tests pass httpx.MockTransport)

    Returns:
        A new httpx.AsyncClient; the caller owns it and must close it
    """
    return httpx.AsyncClient(transport=transport, follow_redirects=True)


def is_success_status(status_code: int) -> bool:
    """Check a status against the 200-228 success window."""
    return SUCCESS_STATUS_MIN <= status_code <= SUCCESS_STATUS_MAX


def is_valid_url(url: str | None) -> bool:
    """Check that a string is an absolute URL with a scheme and host.

    The URL must also be one httpx accepts, so a bad port or host is
    rejected here rather than when the request is built.
    """
    if not url or any(c.isspace() for c in url):
        return False
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return bool(parsed.scheme) and bool(parsed.host)


def basic_auth_header(client_id: str, client_secret: str | None) -> str:
    """Build a Basic Authorization header value from client_id[:secret]."""
    login = client_id if client_secret is None else f"{client_id}:{client_secret}"
    return "Basic " + base64.b64encode(login.encode("utf-8")).decode("ascii")


def describe_response(response: httpx.Response) -> str:
    """Render a response as a status line plus body for error messages."""
    status_line = f"HTTP {response.status_code} {response.reason_phrase}".rstrip()
    body = response.text
    if body:
        return f"{status_line} ({response.request.method} {response.request.url}): {body}"
    return f"{status_line} ({response.request.method} {response.request.url})"
