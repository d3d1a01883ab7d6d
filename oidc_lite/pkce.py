"""PKCE (Proof Key for Code Exchange) support per RFC 7636.

The code verifier is built from two random UUIDs, which keeps it inside the
unreserved URI character set and within the 43-128 character window the RFC
requires.
"""

import base64
import hashlib
import uuid
from dataclasses import dataclass, field

CHALLENGE_METHOD = "S256"

# Two hyphenated UUIDs
VERIFIER_LENGTH = 72


def generate_code_verifier() -> str:
    """Generate a fresh 72-character code verifier.

    Returns:
        Two random UUIDs in upper-case hyphenated form, concatenated
    """
    return str(uuid.uuid4()).upper() + str(uuid.uuid4()).upper()


def generate_code_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    code_challenge = BASE64URL(SHA256(ASCII(code_verifier))), without padding.

    Args:
        verifier: The code verifier string

    Returns:
        Base64URL-encoded SHA256 digest of the verifier
    """
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class PKCEChallenge:
    """A code verifier with its derived challenge.

    The verifier is sent in the token request, the challenge in the
    authorization request.
    """

    code_verifier: str
    code_challenge: str = field(init=False)
    method: str = field(default=CHALLENGE_METHOD, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "code_challenge", generate_code_challenge(self.code_verifier))


def generate_pkce_challenge() -> PKCEChallenge:
    """Generate a new verifier and its S256 challenge."""
    return PKCEChallenge(generate_code_verifier())


def generate_state() -> str:
    """Generate a random state value for an authorization attempt."""
    return str(uuid.uuid4()).upper()


def generate_nonce() -> str:
    """Generate a random nonce value for an authorization attempt."""
    return str(uuid.uuid4()).upper()
