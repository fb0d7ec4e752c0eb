"""Access token commands for local development and smoke tests."""

from __future__ import annotations

from datetime import timedelta

import click

from marketplace_bff.cli.utils import info
from marketplace_bff.infra.auth import TokenService


@click.group(name="token")
def token() -> None:
    """Access token commands."""


@token.command()
@click.option("--subject", required=True, help="User id the token is issued for")
@click.option("--email", required=True, help="Email claim")
@click.option("--privileged", is_flag=True, help="Issue an administrator token")
@click.option("--ttl", default=None, type=int, help="Lifetime in seconds (default: from settings)")
def mint(subject: str, email: str, privileged: bool, ttl: int | None) -> None:
    """Print a signed access token."""
    service = TokenService()
    lifetime = timedelta(seconds=ttl) if ttl is not None else None
    if privileged:
        info("Issuing an administrator token")
    click.echo(service.issue_access_token(subject, email, privileged, ttl=lifetime))
