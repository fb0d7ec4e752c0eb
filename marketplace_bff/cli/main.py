"""Main CLI entry point for marketplace-bff management commands."""

from __future__ import annotations

import click

from marketplace_bff.cli.commands import queries, server, token
from marketplace_bff.infra.logging import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="marketplace-bff")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Marketplace BFF CLI.

    \b
    Commands:
      serve      Run the GraphQL server
      queries    Hash, register and evict persisted queries
      token      Mint access tokens for development
    """
    ctx.ensure_object(dict)


cli.add_command(server.serve)
cli.add_command(queries.queries)
cli.add_command(token.token)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
