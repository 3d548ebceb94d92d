"""Cache management CLI commands.

This module provides commands for managing the local object cache:
- stats: Show cached entries and their expiry
- sweep: Remove expired entries
- clear: Remove every entry
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:  # pragma: no cover
    from findreve_client.cli.main import ClientSettings


def _iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


@click.group("cache")
def cache() -> None:
    """Manage the local object cache."""
    pass


@cache.command("stats")
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
@click.pass_obj
def cache_stats(settings: ClientSettings, output_json: bool) -> None:
    """Show cache statistics.

    Examples:

        findreve cache stats

        findreve cache stats --json
    """
    client = settings.open()
    now = client.cache.now()
    entries = client.cache.entries()
    expired = sum(1 for e in entries.values() if e.is_expired(now))

    if output_json:
        output: dict[str, Any] = {
            "version": client.cache.version,
            "summary": {
                "entry_count": len(entries),
                "expired_count": expired,
            },
            "entries": {
                key: {
                    "stored_at": _iso(entry.stored_at),
                    "ttl_ms": entry.ttl_ms,
                    "expired": entry.is_expired(now),
                }
                for key, entry in sorted(entries.items())
            },
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"\nCache version: {client.cache.version}")
    click.echo("=" * 60)
    click.echo(f"Entries:  {len(entries):,}")
    click.echo(f"Expired:  {expired:,}")
    if entries:
        click.echo()
        click.echo(f"{'Key':<24}  {'Stored at':<32}  {'Status':>8}")
        click.echo("-" * 68)
        for key, entry in sorted(entries.items()):
            key_display = key[:21] + "..." if len(key) > 24 else key
            status = "expired" if entry.is_expired(now) else "valid"
            click.echo(
                f"{key_display:<24}  {_iso(entry.stored_at):<32}  "
                f"{status:>8}"
            )
    click.echo()


@cache.command("sweep")
@click.pass_obj
def cache_sweep(settings: ClientSettings) -> None:
    """Remove expired cache entries."""
    removed = settings.open().cache.sweep_expired()
    noun = "entry" if removed == 1 else "entries"
    click.echo(f"Removed {removed} expired {noun}.")


@cache.command("clear")
@click.pass_obj
def cache_clear(settings: ClientSettings) -> None:
    """Remove every cache entry."""
    settings.open().gateway.clear_cache()
    click.echo("Cache cleared.")
