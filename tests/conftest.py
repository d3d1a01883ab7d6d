"""Shared fixtures for OIDC Lite tests."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from oidc_lite.config import ClientConfiguration
from oidc_lite.discovery import DiscoveryDocument

from tests.helpers import AUTH_ENDPOINT, DISCOVERY_URL, TOKEN_ENDPOINT, RecordingNotifier


@pytest.fixture
def client_config() -> ClientConfiguration:
    """Public client configuration with defaults."""
    return ClientConfiguration(discovery_url=DISCOVERY_URL, client_id="test_client")


@pytest.fixture
def confidential_config() -> ClientConfiguration:
    """Confidential client configuration with a resource and extra parameters."""
    return ClientConfiguration(
        discovery_url=DISCOVERY_URL,
        client_id="test_client",
        client_secret="test_secret",
        redirect_uri="myapp://callback",
        scopes=("openid", "email"),
        resource="https://api.example.com",
        additional_parameters={"prompt": "login"},
    )


@pytest.fixture
def discovery_document() -> DiscoveryDocument:
    """Resolved discovery document."""
    return DiscoveryDocument(authorization_endpoint=AUTH_ENDPOINT, token_endpoint=TOKEN_ENDPOINT)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def token_body() -> dict[str, Any]:
    """A typical token endpoint success body."""
    return {
        "access_token": "access_123",
        "id_token": "id.token.value",
        "refresh_token": "refresh_456",
        "expires_in": 3600,
        "token_type": "Bearer",
        "scope": "openid profile",
        "ext_expires_in": 7200,
    }


@pytest.fixture
def config_file(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a JSON config file and return its path."""

    def _write(data: dict[str, Any]) -> Path:
        path = tmp_path / "oidc.json"
        path.write_text(json.dumps(data))
        return path

    return _write
