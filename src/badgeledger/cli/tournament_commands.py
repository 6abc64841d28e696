"""
badgeledger Tournament CLI Commands

Operates the tournament contract held in a JSON state file, under the same
exclusive state lock as the ledger commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from badgeledger.cli.ledger_commands import (
    _handle_cli_error,
    _key_to_address,
    read_state,
    state_lock,
    write_state,
)
from badgeledger.core.config import ENV_PREFIX
from badgeledger.core.contracts import TournamentManager
from badgeledger.core.contracts.tournament_manager import DEFAULT_ENTRY_FEE
from badgeledger.core.exceptions import AuthorizationError, TournamentError

logger = logging.getLogger(__name__)
console = Console()

tournament_state_option = click.option(
    "--state",
    "state_path",
    envvar=ENV_PREFIX + "TOURNAMENT_STATE_PATH",
    default="tournament_state.json",
    show_default=True,
    help="Tournament state file",
)


@click.group()
def tournament():
    """Tournament entry and finalization."""
    pass


@tournament.command("init")
@click.option("--owner-key", required=True, envvar=ENV_PREFIX + "OWNER_PRIVATE_KEY", help="Owner private key (hex)")
@click.option("--entry-fee", default=DEFAULT_ENTRY_FEE, type=click.IntRange(min=0), show_default=True, help="Entry fee in wei")
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@tournament_state_option
def init_tournament(owner_key: str, entry_fee: int, force: bool, state_path: str):
    """Create the tournament contract and open tournament 1."""
    owner = _key_to_address(owner_key, "owner key")
    manager = TournamentManager(owner=owner, entry_fee=entry_fee)

    with state_lock(state_path):
        if Path(state_path).exists() and not force:
            raise click.ClickException(f"{state_path} already exists (use --force to overwrite)")
        write_state(manager.to_dict(), state_path)

    console.print(f"[bold green]Tournament contract created[/] at {manager.address}")


@tournament.command("status")
@click.option("--json-output", is_flag=True, help="Print raw JSON")
@tournament_state_option
def tournament_status(json_output: bool, state_path: str):
    """Show the tournament currently accepting entries."""
    with state_lock(state_path):
        manager = TournamentManager.from_dict(read_state(state_path))
    summary = {"entry_fee": manager.entry_fee, **manager.get_current_tournament().to_dict()}
    if json_output:
        click.echo(json.dumps(summary, indent=2))
        return

    table = Table(title="Current Tournament")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for key, value in summary.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)


@tournament.command("enter")
@click.option("--player-key", required=True, envvar=ENV_PREFIX + "PLAYER_PRIVATE_KEY", help="Player private key (hex)")
@click.option("--value", required=True, type=click.IntRange(min=0), help="Amount paid in wei")
@tournament_state_option
def enter_tournament(player_key: str, value: int, state_path: str):
    """Enter the current tournament as the player owning --player-key."""
    player = _key_to_address(player_key, "player key")

    with state_lock(state_path):
        manager = TournamentManager.from_dict(read_state(state_path))
        try:
            manager.enter_tournament(player, value)
        except TournamentError as e:
            _handle_cli_error(TournamentError(f"Entry reverted: {e.reason}"))
        write_state(manager.to_dict(), state_path)

    current = manager.get_current_tournament()
    console.print(
        f"[bold green]Entered tournament {current.tournament_id}[/] "
        f"(prize pool {current.total_prize_pool} wei, {current.participant_count} players)"
    )


@tournament.command("finalize")
@click.option("--owner-key", required=True, envvar=ENV_PREFIX + "OWNER_PRIVATE_KEY", help="Owner private key (hex)")
@tournament_state_option
def finalize_tournament(owner_key: str, state_path: str):
    """Close the current tournament and open the next one."""
    caller = _key_to_address(owner_key, "owner key")

    with state_lock(state_path):
        manager = TournamentManager.from_dict(read_state(state_path))
        try:
            finalized = manager.finalize_tournament(caller)
        except AuthorizationError:
            _handle_cli_error(AuthorizationError("caller is not the tournament owner"))
        write_state(manager.to_dict(), state_path)

    console.print(
        f"[bold green]Tournament {finalized.tournament_id} finalized[/] "
        f"with prize pool {finalized.total_prize_pool} wei"
    )
