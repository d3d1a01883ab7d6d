"""Client configuration and loading for OIDC Lite."""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_URI = "oidclite://openID"
DEFAULT_SCOPES = ("openid", "profile", "email", "offline_access")

# Environment variables read when no config file is given
ENV_KEYS = {
    "discovery_url": "OIDC_DISCOVERY_URL",
    "client_id": "OIDC_CLIENT_ID",
    "client_secret": "OIDC_CLIENT_SECRET",
    "redirect_uri": "OIDC_REDIRECT_URI",
    "scopes": "OIDC_SCOPES",
    "resource": "OIDC_RESOURCE",
    "additional_parameters": "OIDC_ADDITIONAL_PARAMETERS",
}

# camelCase spellings accepted in JSON config files
FILE_KEY_ALIASES = {
    "discoveryURL": "discovery_url",
    "discoveryUrl": "discovery_url",
    "clientID": "client_id",
    "clientId": "client_id",
    "clientSecret": "client_secret",
    "redirectURI": "redirect_uri",
    "redirectUri": "redirect_uri",
    "additionalParameters": "additional_parameters",
}


class ConfigError(ValueError):
    """Invalid or incomplete client configuration."""

    pass


def _resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} patterns in a string from environment variables.

    Missing vars resolve to empty string.
    """
    if "${" not in value:
        return value

    result = value
    for match in re.finditer(r'\$\{([^}]+)\}', value):
        env_value = os.environ.get(match.group(1), "")
        result = result.replace(match.group(0), env_value)
    return result


@dataclass(frozen=True)
class ClientConfiguration:
    """Settings for one OpenID Connect client.

    Attributes:
        discovery_url: Full well-known openid-configuration URL,
            e.g. https://my.idp.com/.well-known/openid-configuration
        client_id: The OpenID Connect client ID
        client_secret: Optional client secret
        redirect_uri: Redirect URI; defaults to "oidclite://openID"
        scopes: Ordered scopes requested at login
        resource: Optional resource indicator sent with password grants
        additional_parameters: Extra authorization request parameters
    """

    discovery_url: str
    client_id: str
    client_secret: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: tuple[str, ...] = DEFAULT_SCOPES
    resource: str | None = None
    additional_parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # None selects the defaults, so callers can forward optional settings as-is
        if self.redirect_uri is None:
            object.__setattr__(self, "redirect_uri", DEFAULT_REDIRECT_URI)
        if self.scopes is None:
            object.__setattr__(self, "scopes", DEFAULT_SCOPES)
        else:
            object.__setattr__(self, "scopes", tuple(self.scopes))
        object.__setattr__(
            self,
            "additional_parameters",
            MappingProxyType(dict(self.additional_parameters or {})),
        )

    @property
    def scope_string(self) -> str:
        """Scopes joined with spaces, as sent on the wire."""
        return " ".join(self.scopes)

    def has_client_secret(self) -> bool:
        """Check if a client secret is configured (confidential client)."""
        return self.client_secret is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClientConfiguration":
        """Build a configuration from a dictionary.

        Accepts snake_case keys and the camelCase spellings in FILE_KEY_ALIASES.
        String values may reference environment variables as ${VAR}.

        Raises:
            ConfigError: If discovery_url or client_id is missing
        """
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = FILE_KEY_ALIASES.get(key, key)
            if isinstance(value, str):
                value = _resolve_env_vars(value)
            values[name] = value

        for required in ("discovery_url", "client_id"):
            if not values.get(required):
                raise ConfigError(f"Missing required setting: {required}")

        scopes = values.get("scopes")
        if isinstance(scopes, str):
            scopes = scopes.split()

        additional = values.get("additional_parameters") or {}
        if not isinstance(additional, Mapping):
            raise ConfigError("additional_parameters must be an object of string values")

        return cls(
            discovery_url=values["discovery_url"],
            client_id=values["client_id"],
            client_secret=values.get("client_secret") or None,
            redirect_uri=values.get("redirect_uri") or DEFAULT_REDIRECT_URI,
            scopes=tuple(scopes) if scopes else DEFAULT_SCOPES,
            resource=values.get("resource") or None,
            additional_parameters={
                str(k): _resolve_env_vars(str(v)) for k, v in additional.items()
            },
        )


def config_from_env(environ: Mapping[str, str] | None = None) -> ClientConfiguration:
    """Build a configuration from OIDC_* environment variables.

    Raises:
        ConfigError: If required variables are missing or
            OIDC_ADDITIONAL_PARAMETERS is not a JSON object
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    for name, env_key in ENV_KEYS.items():
        if env.get(env_key):
            data[name] = env[env_key]

    raw_params = data.get("additional_parameters")
    if raw_params:
        try:
            data["additional_parameters"] = json.loads(raw_params)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"{ENV_KEYS['additional_parameters']} must be a JSON object: {e}"
            ) from e

    missing = [ENV_KEYS[k] for k in ("discovery_url", "client_id") if k not in data]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    return ClientConfiguration.from_dict(data)


def _load_env(env_path: Path | None) -> None:
    if env_path is not None:
        logger.debug(f"Loading environment from {env_path}")
        load_dotenv(env_path, override=False)
    elif Path(".env").exists():
        logger.debug("Loading environment from .env")
        load_dotenv(Path(".env"), override=False)


def load_config(
    config_path: Path | None = None,
    env_path: Path | None = None,
) -> ClientConfiguration:
    """Load the client configuration.

    The .env file (explicit, or ./.env when present) is loaded first so that
    both the config file and the OIDC_* variables can reference its values.

    Args:
        config_path: Optional JSON config file
        env_path: Optional .env file

    Returns:
        ClientConfiguration

    Raises:
        FileNotFoundError: If config_path does not exist
        json.JSONDecodeError: If the config file is not valid JSON
        ConfigError: If the configuration is incomplete
    """
    _load_env(env_path)

    if config_path is None:
        return config_from_env()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    data = json.loads(config_path.read_text())
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    logger.debug(f"Loaded client configuration from {config_path}")
    return ClientConfiguration.from_dict(data)


def scopes_from_option(values: Iterable[str]) -> tuple[str, ...] | None:
    """Flatten repeated/space-separated scope options, None when empty."""
    scopes = tuple(s for value in values for s in value.split())
    return scopes or None
