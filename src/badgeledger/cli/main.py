"""
Main CLI entry point for badgeledger.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from badgeledger.cli.credential_commands import credential
from badgeledger.cli.ledger_commands import ledger
from badgeledger.cli.tournament_commands import tournament
from badgeledger.core.crypto_utils import generate_keypair_hex
from badgeledger.core.exceptions import ConfigurationError
from badgeledger.core.logging_config import configure_from_settings, setup_logging

logger = logging.getLogger(__name__)
console = Console()


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, log_level: str):
    """Achievement credentials and badge ledger tooling."""
    ctx.ensure_object(dict)
    setup_logging(name="badgeledger", level=log_level)


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides BADGELEDGER_API_HOST)")
@click.option("--port", default=None, type=int, help="Port (overrides BADGELEDGER_API_PORT)")
def serve(host: Optional[str], port: Optional[int]):
    """Run the achievement HTTP API."""
    from badgeledger.core.api_blueprints import create_app
    from badgeledger.core.config import Settings

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    configure_from_settings(settings)
    app = create_app(settings)
    console.print(
        f"[bold green]Serving[/] on {host or settings.api_host}:{port or settings.api_port} "
        f"(signer {settings.signer_address}, {settings.network.value})"
    )
    app.run(host=host or settings.api_host, port=port or settings.api_port)


@cli.group()
def keys():
    """Signing key utilities."""
    pass


@keys.command("generate")
def generate_key():
    """Generate a new secp256k1 key pair."""
    private_key, address = generate_keypair_hex()
    table = Table(title="New Key")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Address", address)
    table.add_row("Private key", private_key)
    console.print(table)
    console.print("[yellow]Store the private key securely; it is not saved anywhere.[/]")


cli.add_command(ledger)
cli.add_command(credential)
cli.add_command(tournament)


def main() -> int:
    cli(obj={})
    return 0


if __name__ == "__main__":
    sys.exit(main())
