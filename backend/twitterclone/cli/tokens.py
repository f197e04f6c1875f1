"""Flask CLI commands for refresh-token housekeeping."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from twitterclone.services.container import get_services

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("purge")
@with_appcontext
def purge_command() -> None:
    """Delete every expired refresh-token record from the configured store."""
    LOGGER.info("Purging expired refresh tokens...")
    removed = get_services().tokens.purge_expired()
    click.echo(f"Purged {removed} expired refresh token(s).")
