"""Main CLI entry point and core commands.

This module provides the main CLI group, which builds the one storage,
cache and gateway instance each invocation shares, and the commands for
logging in and looking up objects.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import click

from findreve_client import __version__
from findreve_client.api import (
    AuthenticationExpiredError,
    GatewayConfig,
    GatewayError,
    RecordingNavigator,
    RequestGateway,
)
from findreve_client.storage import (
    CredentialStore,
    ObjectCache,
    SQLiteStorage,
    StorageError,
)

DEFAULT_STORAGE_PATH = Path.home() / ".findreve" / "storage.db"


@dataclass
class ClientContext:
    """Objects shared by every command of one CLI invocation."""

    storage: SQLiteStorage
    credentials: CredentialStore
    cache: ObjectCache
    navigator: RecordingNavigator
    gateway: RequestGateway


@dataclass
class ClientSettings:
    """Group options; storage is opened on first use by a command.

    Attributes:
        storage_path: SQLite storage file.
        base_url: Server root URL, or None for the environment default.
    """

    storage_path: str
    base_url: Optional[str] = None
    _client: Optional[ClientContext] = field(default=None, repr=False)

    def open(self) -> ClientContext:
        """Open storage and build the shared objects, once.

        Exits with status 1 if the storage cannot be opened.
        """
        if self._client is not None:
            return self._client
        try:
            storage = SQLiteStorage(self.storage_path).open()
        except StorageError as e:
            click.echo(f"Error opening storage: {e}", err=True)
            sys.exit(1)

        credentials = CredentialStore(storage)
        cache = ObjectCache(storage)
        navigator = RecordingNavigator()
        gateway = RequestGateway(
            credentials,
            cache,
            navigator,
            config=GatewayConfig(base_url=self.base_url),
        )
        self._client = ClientContext(
            storage, credentials, cache, navigator, gateway
        )
        return self._client

    def close(self) -> None:
        """Close the storage if a command opened it."""
        if self._client is not None:
            self._client.storage.close()
            self._client = None


def _default_storage_path() -> str:
    return os.getenv("FINDREVE_STORAGE", str(DEFAULT_STORAGE_PATH))


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--base-url",
    default=None,
    help="Server root URL (default: $FINDREVE_BASE_URL).",
)
@click.option(
    "--storage",
    "storage_path",
    default=None,
    help="Path to the SQLite storage file (default: $FINDREVE_STORAGE).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: Optional[str],
    storage_path: Optional[str],
    verbose: bool,
) -> None:
    """Findreve client - look up lost items.

    Use 'findreve login' to obtain an access token.
    Use 'findreve object KEY' to look up an item.
    Use 'findreve cache stats' to inspect the local cache.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    settings = ClientSettings(
        storage_path=storage_path or _default_storage_path(),
        base_url=base_url,
    )
    ctx.call_on_close(settings.close)
    ctx.obj = settings


@cli.command("login")
@click.option("--username", "-u", required=True, help="Account name.")
@click.option(
    "--password",
    "-p",
    prompt=True,
    hide_input=True,
    help="Account password (prompted if omitted).",
)
@click.pass_obj
def login(settings: ClientSettings, username: str, password: str) -> None:
    """Log in and store the access token.

    Examples:

        findreve login -u admin
    """
    result = settings.open().gateway.login(username, password)
    if not result.success:
        click.echo(f"Login failed: {result.error}", err=True)
        sys.exit(1)
    click.echo("Logged in.")


@cli.command("validate")
@click.pass_obj
def validate(settings: ClientSettings) -> None:
    """Check whether the stored access token is still valid."""
    if settings.open().gateway.validate_token():
        click.echo("Token is valid.")
        return
    click.echo("Token is missing or invalid.", err=True)
    sys.exit(1)


@cli.command("logout")
@click.pass_obj
def logout(settings: ClientSettings) -> None:
    """Forget the access token and clear cached objects."""
    settings.open().gateway.logout()
    click.echo("Logged out.")


@cli.command("object")
@click.argument("key")
@click.option(
    "--no-cache",
    is_flag=True,
    help="Always fetch from the server.",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
@click.pass_obj
def get_object(
    settings: ClientSettings, key: str, no_cache: bool, output_json: bool
) -> None:
    """Look up an object by its KEY.

    Examples:

        findreve object abc123

        findreve object abc123 --no-cache --json
    """
    gateway = settings.open().gateway
    try:
        data = gateway.get_object(key, use_cache=not no_cache)
    except AuthenticationExpiredError as e:
        click.echo(f"{e.message}. Run 'findreve login'.", err=True)
        sys.exit(1)
    except GatewayError as e:
        click.echo(f"Error fetching object: {e.message}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error contacting server: {e}", err=True)
        sys.exit(1)

    if output_json:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
    elif isinstance(data, dict):
        click.echo(f"\n{'='*60}")
        click.echo(f"Object: {key}")
        click.echo("=" * 60)
        for field_name, value in data.items():
            click.echo(f"{field_name:<16}{value}")
        click.echo()
    else:
        click.echo(data)


# Import and register commands
from findreve_client.cli.cache import cache  # noqa: E402

cli.add_command(cache)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
