"""High-level OpenID Connect client.

OIDCClient ties the flow together for one client configuration:

1. Resolve endpoints from the discovery document
2. Build a PKCE-protected login URL for the user-agent
3. Parse the redirect the user-agent lands on
4. Exchange the code (or a refresh token, or user credentials) for tokens

Every network operation is offered twice: as a coroutine that returns the
result or raises, and as a ``submit_*`` method that returns a
``concurrent.futures.Future`` immediately and reports the outcome to the
registered ResultNotifier when it completes.

One client instance handles one authorization attempt at a time: the PKCE
verifier is generated once per instance, and ``current_attempt`` is
replaced by every ``create_login_url`` call.

Usage:
    client = OIDCClient(ClientConfiguration(discovery_url, client_id))
    await client.discover()
    attempt = client.start_authorization()
    # ... user-agent lands on redirect_url ...
    tokens = await client.exchange_code(parse_authorization_code(redirect_url))
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Iterable, TypeVar

import httpx

from . import exchange
from .authorization import AuthorizationAttempt, start_authorization
from .config import ClientConfiguration
from .discovery import DiscoveryDocument, fetch_discovery_document
from .errors import OIDCLiteError
from .pkce import PKCEChallenge, generate_pkce_challenge
from .redirect import extract_code_from_navigation, parse_authorization_code
from .results import AuthFailed, AuthResult, ResultNotifier, RopgOverride, TokenSuccess, notify
from .tokens import TokenResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OIDCClient:
    """OpenID Connect client flow engine for one configuration.

    Attributes:
        config: Immutable client configuration
        discovery: Endpoints resolved so far (empty until discover runs)
        pkce: PKCE verifier/challenge, fixed for the lifetime of the instance
        current_attempt: The most recent authorization attempt, if any
        notifier: Optional delegate for callback-style operations
    """

    def __init__(
        self,
        config: ClientConfiguration,
        notifier: ResultNotifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_workers: int | None = None,
    ):
        """Initialize the client.

        Args:
            config: Client configuration
            notifier: Optional delegate receiving callback-style outcomes
            transport: Optional httpx transport used for every request
            max_workers: Worker threads for callback-style operations
        """
        self.config = config
        self.notifier = notifier
        self.discovery = DiscoveryDocument()
        self.pkce: PKCEChallenge = generate_pkce_challenge()
        self.current_attempt: AuthorizationAttempt | None = None

        self._transport = transport
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def __enter__(self) -> "OIDCClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the worker threads, waiting for running operations."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Background execution
    # ------------------------------------------------------------------

    def _run_in_background(self, operation: Callable[[], Awaitable[T]]) -> "Future[T]":
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="oidc-lite"
                )
            return self._executor.submit(lambda: asyncio.run(operation()))

    def _submit_token_operation(
        self, operation: Callable[[], Awaitable[TokenResponse | RopgOverride]]
    ) -> "Future[AuthResult]":
        async def capture() -> AuthResult:
            try:
                outcome = await operation()
            except OIDCLiteError as e:
                logger.debug(f"Token operation failed: {e}")
                return AuthFailed(e)
            if isinstance(outcome, RopgOverride):
                return outcome
            return TokenSuccess(outcome)

        future = self._run_in_background(capture)
        future.add_done_callback(self._deliver)
        return future

    def _deliver(self, future: "Future[AuthResult]") -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Token operation raised unexpectedly: {error!r}")
            return
        notify(self.notifier, future.result())

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def discover(self) -> DiscoveryDocument:
        """Resolve the authorization and token endpoints.

        A discovery URL that is not a valid URL leaves the current document
        untouched.

        Returns:
            The client's DiscoveryDocument

        Raises:
            DiscoveryLoadError: If the discovery endpoint returns an error status
            DiscoveryParseError: If the discovery body is not a JSON object
            AuthFailure: If the request fails
        """
        document = await fetch_discovery_document(
            self.config.discovery_url, transport=self._transport
        )
        if document is not None:
            self.discovery = document
        return self.discovery

    def submit_discover(self) -> "Future[DiscoveryDocument]":
        """Resolve endpoints in the background.

        Failures are reported through the notifier's failure channel and
        also set on the returned future.
        """
        future = self._run_in_background(self.discover)

        def report(done: "Future[DiscoveryDocument]") -> None:
            if done.cancelled():
                return
            error = done.exception()
            if isinstance(error, OIDCLiteError):
                notify(self.notifier, AuthFailed(error))

        future.add_done_callback(report)
        return future

    def discover_blocking(self) -> DiscoveryDocument | None:
        """Resolve endpoints, blocking the calling thread until done.

        Returns:
            The DiscoveryDocument, or None if discovery failed (the failure
            has been delivered to the notifier)
        """
        future = self.submit_discover()
        try:
            return future.result()
        except OIDCLiteError as e:
            logger.debug(f"Blocking discovery failed: {e}")
            return None

    # ------------------------------------------------------------------
    # Authorization request
    # ------------------------------------------------------------------

    def start_authorization(self) -> AuthorizationAttempt | None:
        """Begin a new authorization attempt.

        Generates a fresh state and nonce and records the attempt as
        current_attempt.

        Returns:
            AuthorizationAttempt, or None if the authorization endpoint is
            missing or invalid
        """
        attempt = start_authorization(self.config, self.discovery, self.pkce)
        self.current_attempt = attempt
        return attempt

    def create_login_url(self) -> str | None:
        """Build the login URL for the user-agent.

        Returns:
            The URL, or None if no authorization endpoint is available
        """
        attempt = self.start_authorization()
        return attempt.url if attempt else None

    # ------------------------------------------------------------------
    # Token exchanges (suspending)
    # ------------------------------------------------------------------

    def _verifier_for(self, attempt: AuthorizationAttempt | None) -> str:
        attempt = attempt or self.current_attempt
        return attempt.code_verifier if attempt else self.pkce.code_verifier

    async def exchange_code(
        self,
        code: str,
        basic_auth: bool = False,
        attempt: AuthorizationAttempt | None = None,
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Args:
            code: Code from the redirect
            basic_auth: Send client credentials as HTTP Basic
            attempt: The attempt that produced the code; defaults to
                current_attempt

        Raises:
            AuthFailure: If the exchange fails
        """
        return await exchange.exchange_code(
            self.discovery.token_endpoint or None,
            self.config,
            code,
            self._verifier_for(attempt),
            basic_auth=basic_auth,
            transport=self._transport,
        )

    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new token set.

        Raises:
            AuthFailure: If the refresh fails
        """
        return await exchange.refresh_tokens(
            self.discovery.token_endpoint or None,
            self.config,
            refresh_token,
            transport=self._transport,
        )

    async def request_token_with_password(self, username: str, password: str) -> TokenResponse:
        """Password grant with HTTP Basic client authentication.

        Raises:
            AuthFailure: If the request fails
        """
        return await exchange.request_token_with_password(
            self.discovery.token_endpoint or None,
            self.config,
            username,
            password,
            transport=self._transport,
        )

    async def request_token_with_password_override(
        self,
        username: str,
        password: str,
        basic_auth: bool = False,
        override_errors: Iterable[str] | None = None,
    ) -> TokenResponse | RopgOverride:
        """Password grant that treats listed 401 bodies as actionable.

        Returns:
            TokenResponse, or RopgOverride for a 401 matching override_errors

        Raises:
            AuthFailure: For any other failure
        """
        return await exchange.request_token_with_password_override(
            self.discovery.token_endpoint or None,
            self.config,
            username,
            password,
            basic_auth,
            override_errors,
            transport=self._transport,
        )

    # ------------------------------------------------------------------
    # Token exchanges (callback)
    # ------------------------------------------------------------------

    def submit_exchange_code(
        self,
        code: str,
        basic_auth: bool = False,
        attempt: AuthorizationAttempt | None = None,
    ) -> "Future[AuthResult]":
        """Exchange a code in the background; see exchange_code."""
        return self._submit_token_operation(
            lambda: self.exchange_code(code, basic_auth=basic_auth, attempt=attempt)
        )

    def submit_refresh_tokens(self, refresh_token: str) -> "Future[AuthResult]":
        """Refresh tokens in the background; see refresh_tokens."""
        return self._submit_token_operation(lambda: self.refresh_tokens(refresh_token))

    def submit_password_grant(self, username: str, password: str) -> "Future[AuthResult]":
        """Password grant in the background; see request_token_with_password."""
        return self._submit_token_operation(
            lambda: self.request_token_with_password(username, password)
        )

    def submit_password_grant_override(
        self,
        username: str,
        password: str,
        basic_auth: bool = False,
        override_errors: Iterable[str] | None = None,
    ) -> "Future[AuthResult]":
        """Override-aware password grant in the background.

        See request_token_with_password_override.
        """
        overrides = list(override_errors or ())
        return self._submit_token_operation(
            lambda: self.request_token_with_password_override(
                username, password, basic_auth, overrides
            )
        )

    # ------------------------------------------------------------------
    # Redirect handling
    # ------------------------------------------------------------------

    def process_response_url(self, url: str, basic_auth: bool = False) -> "Future[AuthResult]":
        """Parse a redirect URL and exchange its code in the background.

        Raises:
            CodeNotFoundError: If the URL carries no code
        """
        code = parse_authorization_code(url)
        return self.submit_exchange_code(code, basic_auth=basic_auth)

    def handle_navigation(self, url: str | None) -> "Future[AuthResult] | None":
        """Watch embedded web view redirects for the configured redirect URI.

        Call this for every server redirect the web view reports.

        Returns:
            Future of the code exchange, or None if the navigation is not a
            redirect carrying a code
        """
        code = extract_code_from_navigation(url, self.config.redirect_uri)
        if code is None:
            return None
        logger.debug("Redirect navigation carried an authorization code")
        return self.submit_exchange_code(code)
