"""CLI entry point for OIDC Lite."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import webbrowser
from pathlib import Path
from typing import NoReturn

import click

from . import __version__
from .client import OIDCClient
from .config import ClientConfiguration, ConfigError, load_config, scopes_from_option
from .errors import OIDCLiteError
from .output import OutputHandler
from .redirect import parse_authorization_code
from .results import RopgOverride

logger = logging.getLogger("oidc_lite")


def create_client(config: ClientConfiguration) -> OIDCClient:
    """Create the client used by CLI commands."""
    return OIDCClient(config)


@click.group()
@click.option("--json", "json_mode", is_flag=True, help="Output in JSON format")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to JSON client config")
@click.option("--env-file", "env_path", type=click.Path(exists=True), help="Path to .env file")
@click.option("--scope", "scopes", multiple=True, help="Override requested scopes (repeatable)")
@click.option("--show-tokens", is_flag=True, help="Print full token values in human output")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    json_mode: bool,
    config_path: str | None,
    env_path: str | None,
    scopes: tuple[str, ...],
    show_tokens: bool,
    verbose: bool,
) -> None:
    """OIDC Lite - OpenID Connect client flows from the command line."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["env_path"] = Path(env_path) if env_path else None
    ctx.obj["scopes"] = scopes_from_option(scopes)
    ctx.obj["output"] = OutputHandler(json_mode, show_tokens)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING)


def get_config(ctx: click.Context) -> ClientConfiguration | NoReturn:
    """Get config from context, handling errors."""
    output: OutputHandler = ctx.obj["output"]
    try:
        config = load_config(ctx.obj["config_path"], ctx.obj["env_path"])
    except FileNotFoundError as e:
        output.error(e, help_text=str(e))
        raise SystemExit(1)  # Never reached due to sys.exit in output.error
    except json.JSONDecodeError as e:
        output.error(e, help_text="The config file contains invalid JSON. Check for syntax errors.")
        raise SystemExit(1)
    except ConfigError as e:
        output.error(
            e,
            help_text="Provide a config file with --config, or set OIDC_DISCOVERY_URL and OIDC_CLIENT_ID.",
        )
        raise SystemExit(1)

    if ctx.obj["scopes"]:
        config = dataclasses.replace(config, scopes=ctx.obj["scopes"])
    return config


def get_discovered_client(ctx: click.Context) -> OIDCClient | NoReturn:
    """Create a client and resolve its endpoints, handling errors."""
    output: OutputHandler = ctx.obj["output"]
    client = create_client(get_config(ctx))
    try:
        asyncio.run(client.discover())
    except OIDCLiteError as e:
        output.error(e, help_text="Check the discovery URL and that the provider is reachable.")
        raise SystemExit(1)

    if not client.discovery.is_populated():
        output.error(
            ValueError(f"No endpoints resolved from {client.config.discovery_url}"),
            help_text="The discovery URL must be an absolute http(s) URL.",
        )
        raise SystemExit(1)
    return client


@main.command()
@click.pass_context
def discover(ctx: click.Context) -> None:
    """Resolve and show the provider endpoints."""
    output: OutputHandler = ctx.obj["output"]
    client = get_discovered_client(ctx)
    data = {
        "authorization_endpoint": client.discovery.authorization_endpoint,
        "token_endpoint": client.discovery.token_endpoint,
    }
    output.success(data, "\n".join(f"{key}: {value or '(none)'}" for key, value in data.items()))


@main.command("login-url")
@click.pass_context
def login_url(ctx: click.Context) -> None:
    """Print a login URL with fresh state and nonce.

    The PKCE verifier only lives for this process, so use "login" to
    complete a flow end to end.
    """
    output: OutputHandler = ctx.obj["output"]
    client = get_discovered_client(ctx)
    attempt = client.start_authorization()
    if attempt is None:
        output.error(ValueError("Provider did not publish a usable authorization endpoint"))
        return
    output.success(
        {"url": attempt.url, "state": attempt.state, "nonce": attempt.nonce},
        attempt.url,
    )


@main.command()
@click.option("--basic-auth", is_flag=True, help="Send client credentials as HTTP Basic")
@click.option("--open/--no-open", "open_browser", default=True, help="Open the login URL in a browser")
@click.pass_context
def login(ctx: click.Context, basic_auth: bool, open_browser: bool) -> None:
    """Run the authorization code flow interactively.

    Opens the login URL, then asks for the URL the browser was redirected
    to and exchanges its code.
    """
    output: OutputHandler = ctx.obj["output"]
    client = get_discovered_client(ctx)
    attempt = client.start_authorization()
    if attempt is None:
        output.error(ValueError("Provider did not publish a usable authorization endpoint"))
        return

    click.echo(f"Log in at:\n{attempt.url}\n", err=True)
    if open_browser and not webbrowser.open(attempt.url):
        click.echo("Could not open a browser; open the URL above manually.", err=True)

    redirect_url = click.prompt("Redirect URL", err=True)

    try:
        code = parse_authorization_code(redirect_url)
        tokens = asyncio.run(client.exchange_code(code, basic_auth=basic_auth, attempt=attempt))
    except OIDCLiteError as e:
        output.error(e)
        return

    output.tokens(tokens)


@main.command()
@click.argument("refresh_token")
@click.pass_context
def refresh(ctx: click.Context, refresh_token: str) -> None:
    """Exchange a refresh token for new tokens."""
    output: OutputHandler = ctx.obj["output"]
    client = get_discovered_client(ctx)
    try:
        tokens = asyncio.run(client.refresh_tokens(refresh_token))
    except OIDCLiteError as e:
        output.error(e)
        return
    output.tokens(tokens)


@main.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, help="Resource owner password")
@click.option("--basic-auth", is_flag=True, help="Send client credentials as HTTP Basic")
@click.option(
    "--override-error",
    "override_errors",
    multiple=True,
    help="401 response body to treat as actionable instead of fatal (repeatable)",
)
@click.pass_context
def password(
    ctx: click.Context,
    username: str,
    password: str,
    basic_auth: bool,
    override_errors: tuple[str, ...],
) -> None:
    """Request tokens with the resource owner password grant."""
    output: OutputHandler = ctx.obj["output"]
    client = get_discovered_client(ctx)
    try:
        if override_errors or basic_auth:
            result = asyncio.run(
                client.request_token_with_password_override(
                    username, password, basic_auth, override_errors
                )
            )
        else:
            result = asyncio.run(client.request_token_with_password(username, password))
    except OIDCLiteError as e:
        output.error(e)
        return

    if isinstance(result, RopgOverride):
        output.success(
            {"override": result.error_message},
            f"Provider requires further action: {result.error_message}",
        )
        return
    output.tokens(result)


if __name__ == "__main__":
    main()
