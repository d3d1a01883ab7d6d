"""Authorization request construction.

Builds the login URL handed to the user-agent (ASWebAuthenticationSession,
an embedded web view, or a browser) and records the per-attempt state and
nonce.
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from .config import ClientConfiguration
from .discovery import DiscoveryDocument
from .pkce import CHALLENGE_METHOD, PKCEChallenge, generate_nonce, generate_state
from .transport import is_valid_url

logger = logging.getLogger(__name__)

# Parameters owned by the builder; additional parameters may not override them
RESERVED_PARAMETERS = frozenset(
    {
        "client_id",
        "response_type",
        "scope",
        "redirect_uri",
        "state",
        "code_challenge_method",
        "code_challenge",
        "nonce",
    }
)


@dataclass(frozen=True)
class AuthorizationAttempt:
    """One login attempt: the URL plus the values it was built with.

    The state is not checked against the redirect by this package; callers
    that want CSRF protection compare it themselves.
    """

    url: str
    state: str
    nonce: str
    pkce: PKCEChallenge

    @property
    def code_verifier(self) -> str:
        return self.pkce.code_verifier


def build_authorization_url(
    config: ClientConfiguration,
    discovery: DiscoveryDocument,
    pkce: PKCEChallenge,
    state: str,
    nonce: str,
) -> str | None:
    """Build the authorization URL.

    Parameter order: client_id, response_type, scope, additional parameters,
    redirect_uri, state, code_challenge_method, code_challenge, nonce. Any
    query already present on the endpoint is replaced.

    Args:
        config: Client configuration
        discovery: Resolved discovery document
        pkce: PKCE challenge for this attempt
        state: State value for this attempt
        nonce: Nonce value for this attempt

    Returns:
        The complete URL, or None if the authorization endpoint is missing
        or not a valid URL
    """
    endpoint = discovery.authorization_endpoint
    if not is_valid_url(endpoint):
        logger.debug(f"No usable authorization endpoint: {endpoint!r}")
        return None

    params: list[tuple[str, str]] = [
        ("client_id", config.client_id),
        ("response_type", "code"),
        ("scope", config.scope_string),
    ]

    for key, value in config.additional_parameters.items():
        if key in RESERVED_PARAMETERS:
            logger.warning(f"Ignoring additional parameter {key!r}: it is set by the request builder")
            continue
        params.append((key, value))

    params.extend(
        [
            ("redirect_uri", config.redirect_uri),
            ("state", state),
            ("code_challenge_method", CHALLENGE_METHOD),
            ("code_challenge", pkce.code_challenge),
            ("nonce", nonce),
        ]
    )

    parts = urlsplit(endpoint)
    query = urlencode(params, quote_via=quote)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def start_authorization(
    config: ClientConfiguration,
    discovery: DiscoveryDocument,
    pkce: PKCEChallenge,
) -> AuthorizationAttempt | None:
    """Start a new authorization attempt with fresh state and nonce.

    Returns:
        AuthorizationAttempt, or None if no login URL could be built
    """
    state = generate_state()
    nonce = generate_nonce()
    url = build_authorization_url(config, discovery, pkce, state, nonce)
    if url is None:
        return None
    return AuthorizationAttempt(url=url, state=state, nonce=nonce, pkce=pkce)
