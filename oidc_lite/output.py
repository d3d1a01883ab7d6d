"""Output formatters for human-readable and JSON output."""

import json
import sys
from typing import Any

import click

from .errors import OIDCLiteError
from .tokens import TokenResponse

# Tokens are shortened in human output unless --show-tokens is given
TOKEN_PREVIEW_LENGTH = 12


def format_json(data: Any, success: bool = True) -> str:
    """Format data as a JSON envelope."""
    return json.dumps({"success": success, "data": data}, indent=2, default=str)


def format_error_json(error: Exception, help_text: str | None = None) -> str:
    """Format an error as JSON, including its OIDC error kind when known."""
    kind = error.kind.value if isinstance(error, OIDCLiteError) else type(error).__name__
    return json.dumps(
        {
            "success": False,
            "error": {
                "type": kind,
                "message": str(error),
                "help": help_text or "",
            },
        },
        indent=2,
    )


def _preview(token: str) -> str:
    if len(token) <= TOKEN_PREVIEW_LENGTH:
        return token
    return f"{token[:TOKEN_PREVIEW_LENGTH]}... ({len(token)} chars)"


def format_tokens_human(tokens: TokenResponse, show_tokens: bool = False) -> str:
    """Render a token response as aligned "field: value" lines."""
    rows: list[tuple[str, str]] = [("token_type", tokens.token_type)]
    for name in ("access_token", "id_token", "refresh_token"):
        value = getattr(tokens, name)
        if value:
            rows.append((name, value if show_tokens else _preview(value)))
    if tokens.expires_in is not None:
        rows.append(("expires_in", f"{tokens.expires_in}s"))
    if tokens.scope:
        rows.append(("scope", tokens.scope))

    width = max(len(name) for name, _ in rows)
    return "\n".join(f"{name.ljust(width)}  {value}" for name, value in rows)


class OutputHandler:
    """Handles output formatting based on mode (JSON or human)."""

    def __init__(self, json_mode: bool = False, show_tokens: bool = False):
        self.json_mode = json_mode
        self.show_tokens = show_tokens

    def success(self, data: Any, human_message: str | None = None) -> None:
        """Output success response."""
        if self.json_mode:
            click.echo(format_json(data))
        elif human_message is not None:
            click.echo(human_message)
        else:
            click.echo(json.dumps(data, indent=2, default=str))

    def tokens(self, tokens: TokenResponse) -> None:
        """Output a token response.

        JSON mode always carries the full provider payload.
        """
        if self.json_mode:
            click.echo(format_json(tokens.raw or tokens.to_dict()))
        else:
            click.secho("Tokens issued", fg="green", bold=True)
            click.echo(format_tokens_human(tokens, self.show_tokens))

    def error(self, error: Exception, help_text: str | None = None) -> None:
        """Output error response and exit with status 1."""
        if self.json_mode:
            click.echo(format_error_json(error, help_text))
        else:
            click.secho(f"Error: {error}", fg="red", err=True)
            if help_text:
                click.echo(f"\n{help_text}", err=True)
        sys.exit(1)
