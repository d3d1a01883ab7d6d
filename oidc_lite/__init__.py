"""OIDC Lite - a lightweight OpenID Connect / OAuth2 client flow engine.

Main Components:
    OIDCClient: Discovery, login URL construction and token exchanges
    ClientConfiguration: Immutable client settings
    TokenResponse: Normalized token endpoint response
    AuthResult: TokenSuccess | AuthFailed | RopgOverride

Quick Start:
    from oidc_lite import ClientConfiguration, OIDCClient

    client = OIDCClient(ClientConfiguration(discovery_url, client_id))
    await client.discover()
    url = client.create_login_url()

    # hand url to the user-agent, then with the redirect it lands on:
    tokens = await client.exchange_code(parse_authorization_code(redirect_url))
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("oidc-lite")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

from .authorization import AuthorizationAttempt, build_authorization_url, start_authorization
from .client import OIDCClient
from .config import (
    DEFAULT_REDIRECT_URI,
    DEFAULT_SCOPES,
    ClientConfiguration,
    ConfigError,
    load_config,
)
from .discovery import DiscoveryDocument, fetch_discovery_document
from .errors import (
    AuthFailure,
    CodeNotFoundError,
    DiscoveryLoadError,
    DiscoveryParseError,
    ErrorKind,
    OIDCLiteError,
    TokenError,
)
from .exchange import (
    exchange_code,
    refresh_tokens,
    request_token_with_password,
    request_token_with_password_override,
)
from .pkce import PKCEChallenge, generate_code_challenge, generate_pkce_challenge
from .redirect import parse_authorization_code
from .results import AuthFailed, AuthResult, ResultNotifier, RopgOverride, TokenSuccess
from .tokens import TokenResponse, normalize_token_response, parse_expires_in

__all__ = [
    "__version__",
    # Client (main entry point)
    "OIDCClient",
    # Configuration
    "ClientConfiguration",
    "ConfigError",
    "load_config",
    "DEFAULT_REDIRECT_URI",
    "DEFAULT_SCOPES",
    # Discovery
    "DiscoveryDocument",
    "fetch_discovery_document",
    # Authorization request
    "AuthorizationAttempt",
    "build_authorization_url",
    "start_authorization",
    "parse_authorization_code",
    # PKCE
    "PKCEChallenge",
    "generate_pkce_challenge",
    "generate_code_challenge",
    # Token exchange
    "exchange_code",
    "refresh_tokens",
    "request_token_with_password",
    "request_token_with_password_override",
    "TokenResponse",
    "normalize_token_response",
    "parse_expires_in",
    # Results
    "AuthResult",
    "TokenSuccess",
    "AuthFailed",
    "RopgOverride",
    "ResultNotifier",
    # Errors
    "ErrorKind",
    "OIDCLiteError",
    "CodeNotFoundError",
    "DiscoveryLoadError",
    "DiscoveryParseError",
    "TokenError",
    "AuthFailure",
]
