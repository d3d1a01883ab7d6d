"""Extraction of authorization codes from redirect URLs.

The query is scanned literally: it is split on "&" and the first segment
starting with "code=" wins. No percent-decoding is applied, so a code that
the provider percent-encodes is returned still encoded. Codes containing a
raw "&" cannot be recovered this way.
"""

from urllib.parse import urlsplit

from .errors import CodeNotFoundError

CODE_PREFIX = "code="


def parse_authorization_code(redirect_url: str) -> str:
    """Extract the authorization code from a redirect URL.

    Args:
        redirect_url: URL the user-agent was redirected to,
            e.g. "oidclite://openID?state=xyz&code=abc123"

    Returns:
        The code, verbatim

    Raises:
        CodeNotFoundError: If no query segment starts with "code="
    """
    query = urlsplit(redirect_url).query
    if query:
        for segment in query.split("&"):
            if segment.startswith(CODE_PREFIX):
                return segment[len(CODE_PREFIX):]
    raise CodeNotFoundError()


def is_redirect_navigation(url: str | None, redirect_uri: str) -> bool:
    """Check whether a web view navigation targets the redirect URI."""
    return url is not None and url.startswith(redirect_uri)


def extract_code_from_navigation(url: str | None, redirect_uri: str) -> str | None:
    """Pull the code out of a web view redirect navigation.

    Embedded web views report the full redirect URL rather than a parsed
    query, so the URL is split on "&" as a whole and the redirect URI prefix
    is stripped from the first part.

    Returns:
        The code, or None if the URL is not a redirect or carries no code
    """
    if url is None or not is_redirect_navigation(url, redirect_uri):
        return None

    prefix = redirect_uri + "?"
    for part in url.split("&"):
        if part.startswith(prefix):
            part = part[len(prefix):]
        if part.startswith(CODE_PREFIX):
            return part[len(CODE_PREFIX):]
    return None
