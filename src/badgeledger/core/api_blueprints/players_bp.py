"""
Players API Blueprint

Read-only player profile and game history lookup.
"""

from __future__ import annotations

from typing import Any, Tuple

from flask import Blueprint, request

from badgeledger.core.api_blueprints.base import (
    get_service,
    get_settings,
    handle_exception,
    success_response,
)

players_bp = Blueprint("players", __name__, url_prefix="/api")

DEFAULT_GAMES_LIMIT = 20


@players_bp.route("/players/<address>", methods=["GET"])
def get_player(address: str) -> Tuple[Any, int]:
    """Player stats plus earned achievements, or ``exists: false``."""
    try:
        profile = get_service().get_player_profile(address)
    except Exception as exc:
        return handle_exception(exc, "get_player")

    if profile is None:
        return success_response({"exists": False})

    achievements = profile.pop("achievements")
    return success_response({"exists": True, "player": profile, "achievements": achievements})


@players_bp.route("/players/<address>/games", methods=["GET"])
def get_player_games(address: str) -> Tuple[Any, int]:
    """Most recent games for a player, newest first."""
    settings = get_settings()
    max_limit = settings.leaderboard_limit if settings else DEFAULT_GAMES_LIMIT
    limit = request.args.get("limit", default=DEFAULT_GAMES_LIMIT, type=int)
    limit = max(1, min(limit, max_limit))

    try:
        games = get_service().get_player_games(address, limit)
    except Exception as exc:
        return handle_exception(exc, "get_player_games")
    return success_response({"games": games, "limit": limit})
