"""Command-line interface for findreve-client.

This package provides the CLI implementation split into logical modules:

- main: Core CLI entry point, login and object lookup commands
- cache: Cache management commands (stats, sweep, clear)
"""

from __future__ import annotations

from findreve_client.cli.main import cli, main

__all__ = ["cli", "main"]
