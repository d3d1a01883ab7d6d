"""Caller-facing results of token operations.

Callback-style operations resolve their future to one of the AuthResult
variants. Callers that prefer a delegate can also register a
ResultNotifier, which receives the same outcome.
"""

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

from .errors import OIDCLiteError
from .tokens import TokenResponse


@dataclass(frozen=True)
class TokenSuccess:
    """Tokens were issued."""

    tokens: TokenResponse


@dataclass(frozen=True)
class AuthFailed:
    """The operation failed."""

    error: OIDCLiteError

    @property
    def message(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class RopgOverride:
    """A password grant returned 401 with one of the caller's override bodies.

    Used for provider responses such as "further action required" that the
    caller wants to act on rather than treat as fatal.
    """

    error_message: str


AuthResult = Union[TokenSuccess, AuthFailed, RopgOverride]


@runtime_checkable
class ResultNotifier(Protocol):
    """Delegate surface for callback-style operations."""

    def auth_failure(self, message: str) -> None: ...

    def token_response(self, tokens: TokenResponse) -> None: ...

    def ropg_success(self, error_message: str) -> None: ...


def notify(notifier: ResultNotifier | None, result: AuthResult) -> None:
    """Deliver a result to the notifier's matching channel."""
    if notifier is None:
        return

    if isinstance(result, TokenSuccess):
        notifier.token_response(result.tokens)
    elif isinstance(result, RopgOverride):
        notifier.ropg_success(result.error_message)
    else:
        notifier.auth_failure(result.message)
