"""
badgeledger API Blueprints

Flask Blueprints for the achievement API, grouped by domain.

Usage:
    from badgeledger.core.api_blueprints import create_app
    app = create_app()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from flask import Flask, g

from badgeledger.core.api_blueprints.achievements_bp import achievements_bp
from badgeledger.core.api_blueprints.core_bp import core_bp
from badgeledger.core.api_blueprints.games_bp import games_bp
from badgeledger.core.api_blueprints.players_bp import players_bp

if TYPE_CHECKING:
    from badgeledger.core.achievement_service import AchievementService
    from badgeledger.core.config import Settings

__all__ = [
    "core_bp",
    "games_bp",
    "players_bp",
    "achievements_bp",
    "register_blueprints",
    "create_app",
    "ALL_BLUEPRINTS",
]

logger = logging.getLogger(__name__)

ALL_BLUEPRINTS = [
    core_bp,
    games_bp,
    players_bp,
    achievements_bp,
]


def register_blueprints(
    app: Flask,
    service: "AchievementService",
    settings: Optional["Settings"] = None,
) -> None:
    """
    Register all API blueprints with the Flask app.

    Sets up a before_request handler that injects the service context into
    Flask's g object, then registers every domain blueprint.
    """
    api_context = {
        "service": service,
        "settings": settings,
    }

    @app.before_request
    def inject_api_context() -> None:
        """Inject API context into Flask's g object for blueprint access."""
        g.api_context = api_context

    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)


def create_app(
    settings: Optional["Settings"] = None,
    service: Optional["AchievementService"] = None,
) -> Flask:
    """
    Application factory.

    Args:
        settings: Runtime settings; read from the environment when omitted
        service: Prebuilt service (tests inject one over in-memory stores)

    Returns:
        Configured Flask application
    """
    from badgeledger.core.achievement_service import AchievementService
    from badgeledger.core.config import Settings

    if settings is None:
        settings = Settings.from_env()
    if service is None:
        service = AchievementService.from_settings(settings)

    app = Flask("badgeledger")
    app.config["MAX_CONTENT_LENGTH"] = settings.max_json_bytes

    register_blueprints(app, service, settings)

    logger.info(
        "API application created",
        extra={
            "event": "api.app_created",
            "network": settings.network.value,
            "signer": service.signer.address,
        },
    )
    return app
