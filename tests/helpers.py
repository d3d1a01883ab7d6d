"""HTTP and notifier helpers shared by the test modules."""

import threading
from typing import Any, Callable

import httpx

from oidc_lite.tokens import TokenResponse

DISCOVERY_URL = "https://idp.example.com/.well-known/openid-configuration"
AUTH_ENDPOINT = "https://idp.example.com/authorize"
TOKEN_ENDPOINT = "https://idp.example.com/token"


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    """Build an httpx.Response with a JSON body."""
    return httpx.Response(status_code=status_code, json=data)


def text_response(text: str, status_code: int = 200) -> httpx.Response:
    """Build an httpx.Response with a plain text body."""
    return httpx.Response(status_code=status_code, text=text)


class RecordingHandler:
    """MockTransport handler that records requests and replays responses.

    Responses are consumed in order; the last one is repeated.
    """

    def __init__(self, *responses: httpx.Response | Callable[[httpx.Request], httpx.Response]):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if callable(response):
            return response(request)
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_body(self) -> str:
        return self.requests[-1].content.decode("utf-8")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def discovery_body() -> dict[str, Any]:
    return {
        "issuer": "https://idp.example.com",
        "authorization_endpoint": AUTH_ENDPOINT,
        "token_endpoint": TOKEN_ENDPOINT,
        "userinfo_endpoint": "https://idp.example.com/userinfo",
    }


class RecordingNotifier:
    """ResultNotifier that records every call."""

    def __init__(self) -> None:
        self.failures: list[str] = []
        self.tokens: list[TokenResponse] = []
        self.overrides: list[str] = []
        self.called = threading.Event()

    def auth_failure(self, message: str) -> None:
        self.failures.append(message)
        self.called.set()

    def token_response(self, tokens: TokenResponse) -> None:
        self.tokens.append(tokens)
        self.called.set()

    def ropg_success(self, error_message: str) -> None:
        self.overrides.append(error_message)
        self.called.set()
