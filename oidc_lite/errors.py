"""Error taxonomy for OIDC Lite.

Every failure surfaced by the flow engine is an ``OIDCLiteError``. Suspending
operations raise these directly; callback operations deliver them through
the result notifier instead.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of an OIDC Lite failure."""

    CODE_NOT_FOUND = "CodeNotFound"
    DISCOVERY_LOAD_FAILED = "DiscoveryLoadFailed"
    DISCOVERY_PARSE_FAILED = "DiscoveryParseFailed"
    TOKEN_ERROR = "TokenError"
    AUTH_FAILURE = "AuthFailure"


class OIDCLiteError(Exception):
    """Base class for all OIDC Lite errors.

    Attributes:
        kind: The ErrorKind for this error
        message: Human-readable description, including whatever part of the
            provider response was available
    """

    kind: ErrorKind = ErrorKind.AUTH_FAILURE
    description = "OIDC Lite error"

    def __init__(self, message: str | None = None):
        self.message = message if message is not None else self.description
        super().__init__(self.message)


class CodeNotFoundError(OIDCLiteError):
    """Redirect URL did not carry an authorization code."""

    kind = ErrorKind.CODE_NOT_FOUND
    description = "Unable to parse code from URL"


class DiscoveryLoadError(OIDCLiteError):
    """Discovery endpoint answered with a non-success status."""

    kind = ErrorKind.DISCOVERY_LOAD_FAILED
    description = "Unable to load OIDC discovery endpoint"


class DiscoveryParseError(OIDCLiteError):
    """Discovery endpoint answered, but the body was not a JSON object."""

    kind = ErrorKind.DISCOVERY_PARSE_FAILED
    description = "Unable to parse OIDC discovery endpoint"


class TokenError(OIDCLiteError):
    """Token-level semantic error."""

    kind = ErrorKind.TOKEN_ERROR
    description = "Token Error"


class AuthFailure(OIDCLiteError):
    """Catch-all for transport errors, failed token requests and decode failures."""

    kind = ErrorKind.AUTH_FAILURE
    description = "Authentication Failure"
