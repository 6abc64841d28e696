"""
Games API Blueprint

Handles game submission and leaderboards.
"""

from __future__ import annotations

import logging
from typing import Any, Tuple

from flask import Blueprint, request

from badgeledger.core.api_blueprints.base import (
    get_service,
    handle_exception,
    success_response,
)
from badgeledger.core.input_validation_schemas import GameSubmitInput
from badgeledger.core.request_validator_middleware import RequestValidator, validate_request

logger = logging.getLogger(__name__)

games_bp = Blueprint("games", __name__, url_prefix="/api")

_validator = RequestValidator()


@games_bp.route("/games/submit", methods=["POST"])
@validate_request(_validator, GameSubmitInput)
def submit_game() -> Tuple[Any, int]:
    """Record a finished game and award any achievements it qualifies for."""
    model: GameSubmitInput = request.validated_model
    try:
        outcome = get_service().submit_game(model.to_game_result())
    except Exception as exc:
        return handle_exception(exc, "submit_game")

    return success_response({"message": "Score recorded successfully", **outcome.to_dict()})


@games_bp.route("/leaderboard", methods=["GET"])
def leaderboard() -> Tuple[Any, int]:
    """Top players by best score."""
    try:
        entries = get_service().leaderboard()
    except Exception as exc:
        return handle_exception(exc, "leaderboard")
    return success_response({"leaderboard": entries})


@games_bp.route("/tournaments/<int:tournament_id>/leaderboard", methods=["GET"])
def tournament_leaderboard(tournament_id: int) -> Tuple[Any, int]:
    """Tournament standings; currently the global ranking."""
    try:
        entries = get_service().leaderboard()
    except Exception as exc:
        return handle_exception(exc, "tournament_leaderboard")
    return success_response({"tournamentId": tournament_id, "leaderboard": entries})
