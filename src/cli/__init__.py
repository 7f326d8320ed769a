"""CLI entry point for the token listing watcher."""

from __future__ import annotations

import click

from src.cli.commands import (
    backfill_history,
    check_health,
    export_tokens,
    import_tokens,
    run_once,
    show_token,
    watch,
)


@click.group()
def cli() -> None:
    """Token listing watcher: social link, market cap, launch and freed alerts."""


cli.add_command(watch)
cli.add_command(run_once)
cli.add_command(backfill_history)
cli.add_command(import_tokens)
cli.add_command(export_tokens)
cli.add_command(show_token)
cli.add_command(check_health)
