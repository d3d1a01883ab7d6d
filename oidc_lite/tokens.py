"""Token response normalization.

Providers disagree on the shape of token responses (expires_in as a number
or a string, missing id_token, extra vendor fields). TokenResponse carries
the common fields in typed form and keeps the decoded payload alongside.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import AuthFailure

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TYPE = "bearer"


def parse_expires_in(value: Any) -> int | None:
    """Decode an expires_in value.

    Tries an integer first, then a numeric string. Anything else is
    treated as absent.

    Args:
        value: Raw expires_in value from the decoded response

    Returns:
        Lifetime in seconds, or None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, float) and value.is_integer():
        return int(value)

    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass

    logger.warning(f"Ignoring expires_in value that is not an integer: {value!r}")
    return None


def _string_field(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


@dataclass
class TokenResponse:
    """Normalized token endpoint response.

    Attributes:
        access_token: The access token, if issued
        id_token: The ID token, passed through unverified
        refresh_token: The refresh token, if issued
        expires_in: Access token lifetime in seconds
        token_type: Token type as reported (default "bearer")
        scope: Granted scopes, space separated
        raw: The full decoded response, for provider-specific fields
    """

    access_token: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = DEFAULT_TOKEN_TYPE
    scope: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_token_response(cls, response: dict[str, Any]) -> "TokenResponse":
        """Create from a decoded token endpoint response.

        Fields are populated only when present with the expected type.
        """
        return cls(
            access_token=_string_field(response, "access_token"),
            id_token=_string_field(response, "id_token"),
            refresh_token=_string_field(response, "refresh_token"),
            expires_in=parse_expires_in(response.get("expires_in")),
            token_type=_string_field(response, "token_type") or DEFAULT_TOKEN_TYPE,
            scope=_string_field(response, "scope"),
            raw=response,
        )

    def has_refresh_token(self) -> bool:
        """Check if this response carries a refresh token."""
        return bool(self.refresh_token)

    def get_auth_header(self) -> str | None:
        """Authorization header value for the access token, if any."""
        if not self.access_token:
            return None
        return f"Bearer {self.access_token}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize the typed fields, omitting the ones that are absent."""
        data: dict[str, Any] = {"token_type": self.token_type}
        for key in ("access_token", "id_token", "refresh_token", "expires_in", "scope"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def normalize_token_response(body: bytes | str) -> TokenResponse:
    """Decode a token endpoint body into a TokenResponse.

    Args:
        body: Raw response body

    Returns:
        TokenResponse

    Raises:
        AuthFailure: If the body is not a JSON object; the message carries
            the raw payload
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body

    try:
        data = json.loads(text)
    except ValueError as e:
        raise AuthFailure(f"Unable to decode response: {e}: {text}") from e

    if not isinstance(data, dict):
        raise AuthFailure(f"Unable to decode response: expected a JSON object: {text}")

    return TokenResponse.from_token_response(data)
