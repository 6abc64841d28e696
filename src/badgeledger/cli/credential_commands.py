"""
badgeledger Credential CLI Commands - fetch credentials from a running API
"""

from __future__ import annotations

import logging
from typing import Any

import click
import requests
from rich.console import Console

logger = logging.getLogger(__name__)
console = Console()


class AchievementClient:
    """Client for the achievement HTTP API."""

    def __init__(self, api_url: str, timeout: float = 30.0):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, **kwargs) -> dict[str, Any]:
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        logger.debug("API request: %s %s", method, url)
        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise click.ClickException(f"API error: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            raise click.ClickException(
                f"API error ({response.status_code}): {body.get('error', response.reason)}"
            )
        return body

    def request_signature(self, player: str, achievement_id: int) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/achievements/signature",
            json={"playerAddress": player, "achievementId": achievement_id},
        )


@click.group()
def credential():
    """Achievement credential commands."""
    pass


@credential.command("request")
@click.option("--api", "api_url", default="http://127.0.0.1:3001", show_default=True, help="API base URL")
@click.option("--player", required=True, help="Player address")
@click.option("--achievement-id", required=True, type=click.IntRange(min=0), help="Achievement id")
def request_credential(api_url: str, player: str, achievement_id: int):
    """
    Fetch a signed credential for an earned achievement.

    Example:
        badgeledger credential request --player 0xabc... --achievement-id 1
    """
    client = AchievementClient(api_url)
    with console.status("[bold cyan]Requesting credential..."):
        result = client.request_signature(player, achievement_id)
    click.echo(result["signature"])
