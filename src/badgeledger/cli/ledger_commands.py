"""
badgeledger Ledger CLI Commands - operator interface to the badge ledger

Provides:
- Ledger state creation and inspection
- Owner-only signer rotation
- Credential redemption
- Mirroring redemptions back into the attestation store

Every command that changes the state file holds an exclusive ``fcntl`` lock
on a sibling ``.lock`` file from load to save, so overlapping processes
apply their changes one after another.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from badgeledger.core.address import checksum_address
from badgeledger.core.attestation_store import AttestationStore
from badgeledger.core.config import ENV_PREFIX, Settings
from badgeledger.core.contracts import AchievementBadges
from badgeledger.core.crypto_utils import address_from_private_key
from badgeledger.core.exceptions import AuthorizationError, RedemptionError

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, extra={"event": "cli.error"})
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def read_state(path: str) -> Dict[str, Any]:
    """Read a JSON contract state file."""
    state_path = Path(path)
    if not state_path.exists():
        raise click.ClickException(f"State not found: {path} (run the matching 'init' command)")
    with state_path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_state(payload: Dict[str, Any], path: str) -> None:
    """Write a JSON contract state file atomically."""
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = state_path.with_suffix(state_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
    os.replace(tmp_path, state_path)


def load_ledger(path: str) -> AchievementBadges:
    """Load ledger state written by ``save_ledger``."""
    return AchievementBadges.from_dict(read_state(path))


def save_ledger(ledger: AchievementBadges, path: str) -> None:
    write_state(ledger.to_dict(), path)


@contextmanager
def state_lock(path: str) -> Iterator[None]:
    """Hold an exclusive lock on the state file's ``.lock`` sibling."""
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = state_path.with_suffix(state_path.suffix + ".lock")
    with lock_path.open("a") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextmanager
def ledger_transaction(path: str) -> Iterator[AchievementBadges]:
    """
    Load, mutate and save the ledger under the state lock.

    State is written back only when the block exits normally; any exception,
    including the ``SystemExit`` raised by ``_handle_cli_error``, skips the write.
    """
    with state_lock(path):
        badges = load_ledger(path)
        yield badges
        save_ledger(badges, path)


def _key_to_address(private_key: str, label: str) -> str:
    try:
        return address_from_private_key(private_key)
    except ValueError as e:
        raise click.BadParameter(f"invalid {label}: {e}") from e


state_option = click.option(
    "--state",
    "state_path",
    envvar=ENV_PREFIX + "LEDGER_STATE_PATH",
    default="ledger_state.json",
    show_default=True,
    help="Ledger state file",
)


@click.group()
def ledger():
    """Badge ledger operations."""
    pass


@ledger.command("init")
@click.option("--owner-key", required=True, envvar=ENV_PREFIX + "OWNER_PRIVATE_KEY", help="Owner private key (hex)")
@click.option("--signer", default=None, help="Initial authorized signer address (defaults to owner)")
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@state_option
def init_ledger(owner_key: str, signer: Optional[str], force: bool, state_path: str):
    """
    Create a new ledger with the owner derived from --owner-key.

    Example:
        badgeledger ledger init --owner-key $OWNER_KEY --state ledger.json
    """
    owner = _key_to_address(owner_key, "owner key")
    try:
        badges = AchievementBadges.deploy(owner=owner, signer=signer)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--signer") from e

    with state_lock(state_path):
        if Path(state_path).exists() and not force:
            raise click.ClickException(f"{state_path} already exists (use --force to overwrite)")
        save_ledger(badges, state_path)

    console.print(
        Panel(
            f"[bold]Ledger:[/] {badges.address}\n"
            f"[bold]Owner:[/] {badges.owner}\n"
            f"[bold]Signer:[/] {badges.authorized_signer}",
            title="[bold green]Ledger created",
        )
    )


@ledger.command("status")
@click.option("--json-output", is_flag=True, help="Print raw JSON")
@state_option
def ledger_status(json_output: bool, state_path: str):
    """Show owner, signer and redemption counts."""
    with state_lock(state_path):
        badges = load_ledger(state_path)
    summary = {
        "address": badges.address,
        "owner": badges.owner,
        "authorized_signer": badges.authorized_signer,
        "players": len(badges.redeemed),
        "badges_redeemed": badges.total_redeemed(),
        "signatures_consumed": len(badges.used_signatures),
        "signer_rotations": len(badges.governance.events),
    }
    if json_output:
        click.echo(json.dumps(summary, indent=2))
        return

    table = Table(title="Badge Ledger")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for key, value in summary.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)


@ledger.command("rotate-signer")
@click.option("--owner-key", required=True, envvar=ENV_PREFIX + "OWNER_PRIVATE_KEY", help="Owner private key (hex)")
@click.option(
    "--new-signer",
    default=None,
    help=f"New signer address (defaults to the address of {ENV_PREFIX}SIGNER_PRIVATE_KEY)",
)
@state_option
def rotate_signer(owner_key: str, new_signer: Optional[str], state_path: str):
    """
    Replace the authorized signer. Only the ledger owner may do this.

    Credentials signed by the previous key stop verifying immediately.
    """
    caller = _key_to_address(owner_key, "owner key")

    if new_signer is None:
        signer_key = os.environ.get(ENV_PREFIX + "SIGNER_PRIVATE_KEY", "").strip()
        if not signer_key:
            raise click.UsageError(
                f"--new-signer not given and {ENV_PREFIX}SIGNER_PRIVATE_KEY is not set"
            )
        new_signer = _key_to_address(signer_key, "signer key")

    with ledger_transaction(state_path) as badges:
        previous = badges.authorized_signer
        try:
            badges.rotate_signer(caller, new_signer)
        except AuthorizationError:
            _handle_cli_error(AuthorizationError("caller is not the ledger owner"))
        except ValueError as e:
            _handle_cli_error(e)

    console.print(f"Previous signer: [yellow]{previous}[/]")
    console.print(f"New signer:      [green]{badges.authorized_signer}[/]")
    console.print("[bold green]Signer updated[/]")


@ledger.command("redeem")
@click.option("--player-key", required=True, envvar=ENV_PREFIX + "PLAYER_PRIVATE_KEY", help="Player private key (hex)")
@click.option("--achievement-id", required=True, type=click.IntRange(min=0), help="Achievement id")
@click.option("--signature", required=True, help="Credential signature (0x-prefixed hex)")
@state_option
def redeem(player_key: str, achievement_id: int, signature: str, state_path: str):
    """Redeem a credential as the player owning --player-key."""
    player = _key_to_address(player_key, "player key")

    with ledger_transaction(state_path) as badges:
        try:
            badges.redeem(player, achievement_id, signature)
        except RedemptionError as e:
            _handle_cli_error(RedemptionError(f"Redemption reverted: {e.reason}"))

    console.print(
        f"[bold green]Badge {achievement_id} redeemed[/] for {checksum_address(player)}"
    )


@ledger.command("sync")
@click.option(
    "--database",
    "database_path",
    envvar=ENV_PREFIX + "DATABASE_PATH",
    default=Settings.database_path,
    show_default=True,
    help="Attestation store database",
)
@state_option
def sync_redemptions(database_path: str, state_path: str):
    """
    Mark earned achievements redeemed locally once the ledger shows them redeemed.

    The ledger stays the authority; this only brings the local records in line.
    """
    with state_lock(state_path):
        badges = load_ledger(state_path)

    store = AttestationStore(database_path)
    try:
        marked = [
            record
            for record in store.get_unredeemed()
            if badges.has_badge(record.player, record.achievement_id)
            and store.mark_redeemed(record.player, record.achievement_id)
        ]
    finally:
        store.close()

    logger.info(
        "Redemptions synced",
        extra={"event": "cli.ledger_synced", "marked": len(marked)},
    )
    console.print(f"[bold green]{len(marked)} achievement(s) marked redeemed[/]")
