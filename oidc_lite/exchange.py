"""Token endpoint exchanges.

Implements the three grants used by OIDC Lite against a token endpoint:

1. Authorization code (with PKCE verifier)
2. Refresh token
3. Resource owner password (ROPG), in a plain form and in a form that lets
   callers treat specific 401 bodies as actionable

Every function here is a coroutine that returns a TokenResponse or raises
an OIDCLiteError.
"""

import logging
from typing import Iterable
from urllib.parse import quote, quote_plus, urlencode

import httpx

from .config import ClientConfiguration
from .errors import AuthFailure
from .results import RopgOverride
from .tokens import TokenResponse, normalize_token_response
from .transport import (
    FORM_CONTENT_TYPE,
    basic_auth_header,
    create_http_client,
    describe_response,
    is_success_status,
    is_valid_url,
)

logger = logging.getLogger(__name__)

# Characters left unescaped when the redirect URI is placed in a query
QUERY_SAFE_CHARS = "!$&'()*+,;=:@/?"


def _require_token_url(token_endpoint: str | None) -> str:
    if token_endpoint is None:
        raise AuthFailure("No token endpoint found")
    if not is_valid_url(token_endpoint):
        raise AuthFailure("Unable to make the token endpoint into a URL")
    return token_endpoint


def _form_value(value: str) -> str:
    """Form-encode a single value, spaces as '+'."""
    return quote_plus(value, safe="*")


def pretty_print_error(data: dict) -> str:
    """Render a JSON error body as "key:  value" lines."""
    return "".join(f"{key}:  {value}\n" for key, value in data.items())


async def _post(
    token_url: str,
    body: str,
    headers: dict[str, str],
    http_client: httpx.AsyncClient | None,
    transport: httpx.AsyncBaseTransport | None,
) -> httpx.Response:
    client = http_client or create_http_client(transport)
    should_close = http_client is None

    try:
        return await client.post(token_url, content=body.encode("utf-8"), headers=headers)
    except httpx.RequestError as e:
        raise AuthFailure(f"Network error calling token endpoint {token_url}: {e}") from e
    finally:
        if should_close:
            await client.aclose()


async def exchange_code(
    token_endpoint: str | None,
    config: ClientConfiguration,
    code: str,
    code_verifier: str,
    basic_auth: bool = False,
    http_client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TokenResponse:
    """Exchange an authorization code for tokens.

    The client secret, when configured, travels in the body unless
    basic_auth is set, in which case it goes in a Basic Authorization
    header instead.

    Args:
        token_endpoint: Token endpoint from discovery
        config: Client configuration
        code: Authorization code from the redirect, sent verbatim
        code_verifier: PKCE verifier of the attempt that produced the code
        basic_auth: Send client credentials as HTTP Basic
        http_client: Optional HTTP client
        transport: Optional transport for the client created otherwise

    Returns:
        Normalized TokenResponse

    Raises:
        AuthFailure: If the request fails, the status is not 200, or the
            body cannot be decoded
    """
    token_url = _require_token_url(token_endpoint)

    headers = {
        "Accept": "application/json",
        "Content-Type": FORM_CONTENT_TYPE,
    }
    body = f"grant_type=authorization_code&client_id={config.client_id}"

    if config.has_client_secret():
        if basic_auth:
            headers["Authorization"] = basic_auth_header(config.client_id, config.client_secret)
        else:
            body += f"&client_secret={config.client_secret}"

    body += "&redirect_uri=" + quote(config.redirect_uri, safe=QUERY_SAFE_CHARS)
    body += f"&code={code}"
    body += f"&code_verifier={code_verifier}"

    logger.debug(f"Exchanging authorization code at {token_url} (basic_auth={basic_auth})")
    response = await _post(token_url, body, headers, http_client, transport)

    if response.status_code == 200:
        return normalize_token_response(response.content)

    try:
        error_data = response.json()
    except ValueError:
        error_data = None

    if isinstance(error_data, dict):
        raise AuthFailure(pretty_print_error(error_data))
    raise AuthFailure(describe_response(response))


async def refresh_tokens(
    token_endpoint: str | None,
    config: ClientConfiguration,
    refresh_token: str,
    http_client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TokenResponse:
    """Exchange a refresh token for a new token set.

    Any non-empty body is normalized, whatever the status; providers that
    answer with an error object therefore yield a TokenResponse without an
    access token, with the error fields in raw.

    Raises:
        AuthFailure: If the request fails, the body is empty, or the body
            cannot be decoded
    """
    token_url = _require_token_url(token_endpoint)

    body = (
        f"grant_type=refresh_token&refresh_token={refresh_token}"
        f"&client_id={config.client_id}"
    )
    if config.has_client_secret():
        body += f"&client_secret={config.client_secret}"

    logger.debug(f"Refreshing tokens at {token_url}")
    response = await _post(
        token_url, body, {"Content-Type": FORM_CONTENT_TYPE}, http_client, transport
    )

    if not response.content:
        raise AuthFailure("bad response")

    if not is_success_status(response.status_code):
        logger.warning(f"Token refresh returned HTTP {response.status_code}")

    tokens = normalize_token_response(response.content)
    if not tokens.has_refresh_token():
        logger.debug("Refresh response did not include a new refresh token")
    return tokens


async def request_token_with_password(
    token_endpoint: str | None,
    config: ClientConfiguration,
    username: str,
    password: str,
    http_client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TokenResponse:
    """Resource owner password grant with HTTP Basic client authentication.

    Body values are form-encoded individually with spaces as '+'. The
    client credentials are sent both as a Basic header and in the body.

    Raises:
        AuthFailure: If the request fails, the body is empty, or the body
            cannot be decoded
    """
    token_url = _require_token_url(token_endpoint)

    parameters = (
        f"grant_type=password&username={_form_value(username)}"
        f"&password={_form_value(password)}&scope={_form_value(config.scope_string)}"
    )
    if config.resource is not None:
        parameters += f"&resource={_form_value(config.resource)}"
    parameters += f"&client_id={_form_value(config.client_id)}"
    if config.has_client_secret():
        parameters += f"&client_secret={_form_value(config.client_secret)}"

    headers = {
        "Authorization": basic_auth_header(config.client_id, config.client_secret),
        "Content-Type": FORM_CONTENT_TYPE,
        "Accept": "application/json",
    }

    logger.debug(f"Requesting tokens with password grant at {token_url}")
    response = await _post(token_url, parameters, headers, http_client, transport)

    if not response.content:
        raise AuthFailure("bad response")

    return normalize_token_response(response.content)


async def request_token_with_password_override(
    token_endpoint: str | None,
    config: ClientConfiguration,
    username: str,
    password: str,
    basic_auth: bool,
    override_errors: Iterable[str] | None = None,
    http_client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TokenResponse | RopgOverride:
    """Resource owner password grant with override error bodies.

    A 401 whose body exactly matches one of override_errors is returned as
    RopgOverride instead of failing, so callers can act on responses such as
    "password change required".

    Args:
        token_endpoint: Token endpoint from discovery
        config: Client configuration
        username: Resource owner username
        password: Resource owner password
        basic_auth: Send client credentials as HTTP Basic instead of in the body
        override_errors: 401 bodies to treat as actionable

    Returns:
        TokenResponse on a 200-228 status, RopgOverride on a matching 401

    Raises:
        AuthFailure: For any other outcome, carrying the raw response body
    """
    token_url = _require_token_url(token_endpoint)

    headers = {
        "Accept": "application/json",
        "Cache-Control": "no-cache",
        "Content-Type": FORM_CONTENT_TYPE,
    }
    params: list[tuple[str, str]] = [
        ("grant_type", "password"),
        ("scope", config.scope_string),
        ("username", username),
        ("password", password),
    ]

    if basic_auth:
        headers["Authorization"] = basic_auth_header(config.client_id, config.client_secret)
    else:
        params.append(("client_id", config.client_id))
        if config.has_client_secret():
            params.append(("client_secret", config.client_secret))

    logger.debug(f"Requesting tokens with password grant at {token_url} (basic_auth={basic_auth})")
    response = await _post(
        token_url, urlencode(params, quote_via=quote), headers, http_client, transport
    )

    if is_success_status(response.status_code):
        return normalize_token_response(response.content)

    body = response.text
    if response.status_code == 401 and body in set(override_errors or ()):
        logger.debug("Password grant returned an override error")
        return RopgOverride(error_message=body)

    raise AuthFailure(body or "Unknown error")
